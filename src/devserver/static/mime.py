"""Fixed extension to MIME type table."""
import posixpath

DEFAULT_MIME = "application/octet-stream"
HTML_MIME = "text/html"

MIME_TYPES: dict[str, str] = {
    ".html": HTML_MIME,
    ".htm": HTML_MIME,
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".webmanifest": "application/manifest+json",
    ".xml": "text/xml",
    ".txt": "text/plain",
    ".md": "text/plain",
    ".gif": "image/gif",
    ".png": "image/png",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".ico": "image/vnd.microsoft.icon",
    ".mid": "audio/midi",
    ".midi": "audio/midi",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".wasm": "application/wasm",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".pdf": "application/pdf",
}


def get_mime(path: str) -> str:
    """Look up the MIME type for a path by its extension.

    Args:
        path: Request path or filename.

    Returns:
        MIME type, or application/octet-stream for unknown extensions.
    """
    _, ext = posixpath.splitext(path)
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME)
