"""Convenience imports for metadata discovery."""

from accountauth.models.user import User
from accountauth.models.one_time_token import OneTimeToken

__all__ = ["OneTimeToken", "User"]
