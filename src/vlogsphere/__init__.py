"""
VlogSphere client core.

- session:   authentication session (bootstrap, login, renewal, logout)
- mutations: optimistic follow/like/dislike/bookmark toggles
- transport: HTTP gateway to the VlogSphere API
- cli:       `vlogsphere` command line
"""

from vlogsphere.client import VlogSphereClient
from vlogsphere.results import ActionResult

__all__ = ["VlogSphereClient", "ActionResult"]
