"""API routes for the video description pipeline."""

from vidscribe.api import routes

__all__ = ["routes"]
