"""User profile document package."""

from .UserProfile import UserProfile, log_user_activity

__all__ = ["UserProfile", "log_user_activity"]
