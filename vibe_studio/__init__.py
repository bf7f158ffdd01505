"""Vibe Studio: backend for a browser code editor with an AI assistant."""

__version__ = "1.0.0"
