"""HTTP routes for the dev server."""
