"""Resolve the signed-in user from a Supabase access token."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from supabase import AuthApiError, Client

_logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Interface for mapping a bearer token to a user id."""

    def get_user_id(self, access_token: str | None) -> UUID | None:
        """Return the user id for a token, or None when signed out."""


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase auth."""

    client: Client

    def get_user_id(self, access_token: str | None) -> UUID | None:
        """Validate the token with Supabase and return the user id."""
        if not access_token:
            return None
        try:
            response = self.client.auth.get_user(access_token)
        except AuthApiError as exc:
            _logger.info("Rejected access token: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return UUID(response.user.id)
