"""Path resolver tests."""

from pathlib import Path

import pytest

from devserver.static.paths import ResourceNotFound, resolve_path


def test_directory_path_resolves_to_index(web_root: Path) -> None:
    """Trailing slash appends index.html."""
    (web_root / "docs").mkdir()
    resolved = resolve_path(web_root, "/docs/")
    assert resolved == (web_root / "docs" / "index.html").resolve()


def test_root_resolves_to_index(web_root: Path) -> None:
    """Bare slash serves the root document."""
    assert resolve_path(web_root, "/") == (web_root / "index.html").resolve()


def test_resolved_path_is_absolute(web_root: Path) -> None:
    """Resolved paths are absolute and inside the root."""
    resolved = resolve_path(web_root, "/css/site.css")
    assert resolved.is_absolute()
    assert web_root.resolve() in resolved.parents


def test_dot_segments_are_collapsed(web_root: Path) -> None:
    """Current-directory segments do not affect the result."""
    resolved = resolve_path(web_root, "/./a/./b.js")
    assert resolved == (web_root / "a" / "b.js").resolve()


@pytest.mark.parametrize(
    "request_path",
    [
        "../../etc/passwd",
        "../secret.txt",
        "a/../../outside.html",
        "..",
    ],
)
def test_traversal_is_rejected(web_root: Path, request_path: str) -> None:
    """Escaping the root raises the same error as a missing file."""
    with pytest.raises(ResourceNotFound):
        resolve_path(web_root, request_path)


def test_absolute_traversal_stays_confined(web_root: Path) -> None:
    """Leading-slash parents collapse at the root instead of escaping it."""
    resolved = resolve_path(web_root, "/../../etc/passwd")
    assert resolved == (web_root / "etc" / "passwd").resolve()


def test_null_byte_is_rejected(web_root: Path) -> None:
    """Null bytes never reach the filesystem."""
    with pytest.raises(ResourceNotFound):
        resolve_path(web_root, "/index.html\0.png")


def test_root_itself_is_not_servable(web_root: Path) -> None:
    """The root directory is not strictly inside itself."""
    with pytest.raises(ResourceNotFound):
        resolve_path(web_root, "/.")


def test_symlink_escaping_root_is_rejected(web_root: Path, tmp_path: Path) -> None:
    """Links pointing outside the root are treated as missing."""
    outside = tmp_path / "outside.txt"
    outside.write_text("secret")
    (web_root / "link.txt").symlink_to(outside)
    with pytest.raises(ResourceNotFound):
        resolve_path(web_root, "/link.txt")
