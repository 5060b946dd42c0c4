"""
Out-of-Stock — Acting Identity

The service only needs to know who is acting. Anything with a
current_actor() method will do; RequestIdentity reads it off a DRF
request.

@file out_of_stock/identity.py
"""

from typing import Protocol


class IdentityProvider(Protocol):
    def current_actor(self) -> str | None: ...


class RequestIdentity:
    def __init__(self, request):
        self.request = request

    def current_actor(self) -> str | None:
        user = getattr(self.request, 'user', None)
        if user is None or not user.is_authenticated:
            return None
        return str(user.pk)


class StaticIdentity:
    """Fixed actor, for management commands and tests."""

    def __init__(self, actor: str | None):
        self.actor = actor

    def current_actor(self) -> str | None:
        return self.actor
