"""Security-first path resolution for the web root."""
import posixpath
from pathlib import Path

DEFAULT_DOCUMENT = "index.html"


class ResourceNotFound(Exception):
    """Raised when a request path cannot be served.

    Covers missing files, unreadable files and paths escaping the web
    root alike, so callers cannot tell traversal attempts from absence.
    """

    def __init__(self, path: str) -> None:
        """Initialize not-found error.

        Args:
            path: The request path that failed.
        """
        super().__init__(f"Not found: {path}")
        self.path = path


def resolve_path(root: Path, request_path: str) -> Path:
    """Resolve a URL path to an absolute file path inside the web root.

    Args:
        root: Web root directory.
        request_path: URL-decoded request path, e.g. "/css/site.css".

    Returns:
        Absolute Path strictly inside root.

    Raises:
        ResourceNotFound: If the path contains null bytes or traversal
            segments, or resolves outside root.
    """
    if "\0" in request_path:
        raise ResourceNotFound(request_path)

    resource = request_path
    if resource.endswith("/"):
        resource += DEFAULT_DOCUMENT

    normalized = posixpath.normpath(resource)
    if ".." in normalized.split("/"):
        raise ResourceNotFound(request_path)

    root_path = root.resolve()
    resolved = (root_path / normalized.lstrip("/")).resolve()

    if root_path not in resolved.parents:
        raise ResourceNotFound(request_path)

    return resolved
