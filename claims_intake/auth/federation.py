"""Third-party identity federation.

A client exchanges a provider access token for a profile by calling the
provider's OpenID Connect userinfo endpoint. Providers are configured as a
mapping of provider name to userinfo URL (``FEDERATED_PROVIDERS``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..errors import FederationError, InvalidRequestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FederatedProfile:
    """Identity asserted by a third-party provider."""

    provider: str
    subject: str
    email: str
    name: str
    email_verified: bool = True


class FederatedIdentityClient:
    """Resolves provider access tokens into FederatedProfile objects."""

    def __init__(self, providers: dict[str, str], timeout: float = 10.0) -> None:
        self.providers = dict(providers)
        self.timeout = timeout

    def fetch_profile(self, provider: str, access_token: str) -> FederatedProfile:
        """Call the provider's userinfo endpoint with the given token.

        Raises:
            InvalidRequestError: Provider is not configured
            FederationError: Provider rejected the token or is unreachable
        """
        userinfo_url = self.providers.get(provider)
        if not userinfo_url:
            raise InvalidRequestError(f"Unknown identity provider: {provider}")

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(userinfo_url, headers=headers)
        except httpx.ConnectError as e:
            raise FederationError(f"Failed to connect to {provider}: {e}", provider)
        except httpx.TimeoutException as e:
            raise FederationError(f"{provider} userinfo request timed out: {e}", provider)

        if response.status_code != 200:
            logger.warning(f"{provider} rejected federated token: {response.status_code}")
            raise FederationError(f"{provider} rejected the access token", provider)

        try:
            data = response.json()
        except ValueError:
            raise FederationError(f"{provider} returned a malformed profile", provider)

        subject = data.get("sub")
        email = data.get("email")
        if not subject or not email:
            raise FederationError(f"{provider} profile lacks subject or email", provider)

        return FederatedProfile(
            provider=provider,
            subject=str(subject),
            email=str(email).lower(),
            name=data.get("name") or str(email).split("@")[0],
            email_verified=bool(data.get("email_verified", True)),
        )
