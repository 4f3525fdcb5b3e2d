"""HTTP surface (FastAPI) for content generation and the chatbot."""

from src.api.app import create_app

__all__ = ["create_app"]
