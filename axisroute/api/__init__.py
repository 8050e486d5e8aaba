"""FastAPI routes exposing the engine to the presentation layer."""
