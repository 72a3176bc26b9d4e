"""Pydantic document models."""

from mongodb_client.models.podcast_models import Episode, Podcast

__all__ = ["Episode", "Podcast"]
