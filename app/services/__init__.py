"""Service layer for RetroScreen."""
