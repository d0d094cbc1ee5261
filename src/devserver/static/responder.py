"""Static file responses with live-reload client injection."""
import asyncio
from pathlib import Path

import structlog
from starlette.responses import PlainTextResponse, Response

from devserver.static.mime import HTML_MIME, get_mime
from devserver.static.paths import DEFAULT_DOCUMENT, ResourceNotFound, resolve_path

logger = structlog.get_logger()

RELOAD_CLIENT_PATH = "/_dev-events.js"

RELOAD_SCRIPT_TAG = f'<script src="{RELOAD_CLIENT_PATH}"></script>'.encode()

BODY_CLOSE_TAG = b"</body>"

NO_CACHE_HEADERS: dict[str, str] = {"Cache-Control": "no-cache"}


def inject_reload_client(content: bytes) -> bytes:
    """Insert the reload script tag before the first closing body tag.

    Content without a closing body tag is returned unchanged.

    Args:
        content: Raw HTML document bytes.

    Returns:
        Document with exactly one script tag added.
    """
    return content.replace(BODY_CLOSE_TAG, RELOAD_SCRIPT_TAG + BODY_CLOSE_TAG, 1)


def not_found() -> Response:
    """Uniform 404 used for every file-serving failure."""
    return PlainTextResponse(
        "404 Not Found",
        status_code=404,
        headers=NO_CACHE_HEADERS,
    )


async def serve_file(root: Path, request_path: str, inject: bool = True) -> Response:
    """Serve a file from the web root.

    Args:
        root: Web root directory.
        request_path: URL-decoded request path.
        inject: Add the reload client to HTML documents.

    Returns:
        200 response with the file content, or a 404 response.
    """
    try:
        file_path = resolve_path(root, request_path)
        content = await asyncio.to_thread(file_path.read_bytes)
    except (ResourceNotFound, OSError) as e:
        logger.debug("resource_not_found", path=request_path, reason=type(e).__name__)
        return not_found()

    document = request_path + DEFAULT_DOCUMENT if request_path.endswith("/") else request_path
    mime = get_mime(document)
    if inject and mime == HTML_MIME:
        content = inject_reload_client(content)

    return Response(content=content, media_type=mime, headers=NO_CACHE_HEADERS)
