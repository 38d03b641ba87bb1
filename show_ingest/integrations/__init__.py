"""
Clients for external services.
"""

from .errors import IntegrationError, MixcloudOAuthError, StoryblokError
from .mixcloud import MixcloudClient
from .storyblok import StoryblokClient

__all__ = [
    "IntegrationError",
    "MixcloudClient",
    "MixcloudOAuthError",
    "StoryblokClient",
    "StoryblokError",
]
