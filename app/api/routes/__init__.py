"""API routers for RetroScreen."""
