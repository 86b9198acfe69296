"""Core module for the shortlink service."""

from shortlinks.core.config import settings

__all__ = ["settings"]
