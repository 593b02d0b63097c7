# ─────────────────────────────────────────────────────────────────
# auth.py - Bearer Token Verification
#
# Every /api/* route depends on current_user(). The token from the
# Authorization header is forwarded to the identity provider's
# accounts:lookup endpoint; a user id + email come back, or nothing.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Optional

import httpx
from fastapi import Depends, Header
from pydantic import BaseModel

from config import settings
from errors import Unauthorized

logger = logging.getLogger("auth")


class VerifiedUser(BaseModel):
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None


class IdentityVerifier:
    def __init__(self, api_key: Optional[str], lookup_url: str, timeout: float = 10.0):
        self.api_key = api_key
        self.lookup_url = lookup_url
        self.timeout = timeout

    async def verify(self, token: str) -> Optional[VerifiedUser]:
        """Return the user behind `token`, or None if the provider rejects it."""
        if not self.api_key:
            logger.error("FIREBASE_API_KEY is not configured, rejecting token")
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.lookup_url,
                    params={"key": self.api_key},
                    json={"idToken": token},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Identity lookup failed: {e}")
            return None

        if response.status_code != 200:
            logger.info(f"Identity provider rejected token ({response.status_code})")
            return None

        users = response.json().get("users") or []
        if not users:
            return None

        user = users[0]
        return VerifiedUser(
            user_id=user["localId"],
            email=user.get("email"),
            name=user.get("displayName"),
        )


identity_verifier = IdentityVerifier(
    settings.firebase_api_key,
    settings.identity_lookup_url,
    timeout=settings.http_timeout,
)


def get_identity_verifier() -> IdentityVerifier:
    return identity_verifier


async def current_user(
    authorization: Optional[str] = Header(default=None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedUser:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Missing or malformed token")

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise Unauthorized("Missing or malformed token")

    user = await verifier.verify(token)
    if user is None:
        raise Unauthorized("Invalid or expired token")

    return user
