"""API routers, mounted under /api by api.main.create_app()."""
