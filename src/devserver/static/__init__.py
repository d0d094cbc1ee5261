"""Static file serving for the web root."""
from devserver.static.mime import get_mime
from devserver.static.paths import ResourceNotFound, resolve_path
from devserver.static.responder import inject_reload_client, serve_file

__all__ = [
    "ResourceNotFound",
    "get_mime",
    "inject_reload_client",
    "resolve_path",
    "serve_file",
]
