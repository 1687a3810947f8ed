"""Web layer: routers, handlers and template helpers."""
