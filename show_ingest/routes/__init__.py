"""
HTTP routers.
"""

from . import auth, mixcloud, shows

routers = [mixcloud.router, auth.router, shows.router]

__all__ = ["routers"]
