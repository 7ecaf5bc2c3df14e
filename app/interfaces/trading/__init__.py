"""HTTP routes, schemas and dependencies for trading."""
