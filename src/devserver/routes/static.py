"""Catch-all route serving files from the web root."""

from fastapi import APIRouter, Request
from fastapi.responses import Response

from devserver.static.responder import serve_file

router = APIRouter(tags=["static"])


@router.api_route("/{resource_path:path}", methods=["GET", "HEAD"])
async def static_file(request: Request, resource_path: str) -> Response:
    """Serve any other path from the web root.

    Missing files, unreadable files and paths outside the root all
    produce the same 404.

    Args:
        request: FastAPI request object.
        resource_path: URL-decoded path below the root, may be empty.

    Returns:
        File response or 404.
    """
    settings = request.app.state.settings
    return await serve_file(
        settings.root_path,
        "/" + resource_path,
        inject=settings.live_reload,
    )
