"""Static file server with live reload for local development."""

__version__ = "0.1.0"
