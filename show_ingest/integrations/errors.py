"""Exceptions raised by the external service clients."""

from typing import Optional


class IntegrationError(Exception):
    """An external service call failed or returned something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MixcloudOAuthError(IntegrationError):
    """Mixcloud OAuth token endpoint rejected a request."""


class StoryblokError(IntegrationError):
    """Storyblok Management API rejected a request."""
