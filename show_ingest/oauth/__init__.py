"""
Mixcloud OAuth credential management.
"""

from .token_manager import MixcloudTokenManager

__all__ = ["MixcloudTokenManager"]
