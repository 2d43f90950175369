"""
Routes Module
Modular route handlers for the API
"""

from .sessions import handle_session_routes
from .challenges import handle_challenge_routes
from .profile import handle_profile_routes

__all__ = [
    "handle_session_routes",
    "handle_challenge_routes",
    "handle_profile_routes",
]
