"""
asgi.py -- ASGI entry point for Chirpy.

Run with:  uvicorn asgi:app --reload

Settings are read when api.main is imported. Set JWT_SECRET (or DEBUG=true
for a throwaway dev secret) before starting the server.
"""

from api.main import app

__all__ = ["app"]
