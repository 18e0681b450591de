"""
Uploader configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
