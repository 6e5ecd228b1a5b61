"""Shared schema exports."""

from .account import UserProfile
from .events import DomainEvent, UserEventType, UserLoggedIn, UserRegistered

__all__ = [
    "DomainEvent",
    "UserEventType",
    "UserLoggedIn",
    "UserProfile",
    "UserRegistered",
]
