"""JWT validation for identity tokens.

Tokens are issued by the external identity service. They are verified
either against a static key (HMAC secret or PEM public key) or, when an
OIDC issuer is configured, against the issuer's JWKS with caching.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

if TYPE_CHECKING:
    from shared_kernel.auth.observability import JWTValidatorProbe


@dataclass(frozen=True)
class TokenClaims:
    """Validated JWT claims.

    Attributes:
        sub: Identifier of the authenticated caller.
        tenant_pid: Raw tenant claim, or None for callers that are not
            tenant-scoped.
    """

    sub: str
    tenant_pid: str | None


class InvalidTokenError(Exception):
    """Raised when JWT validation fails."""

    pass


class JWTValidator:
    """Validates identity tokens and extracts the subject and tenant claims.

    With ``issuer_url`` set, keys come from the provider's JWKS (fetched via
    OpenID discovery and cached for ``jwks_cache_ttl``) and the issuer is
    verified. Otherwise ``key`` is used directly.
    """

    def __init__(
        self,
        probe: JWTValidatorProbe,
        key: str | None = None,
        issuer_url: str | None = None,
        audience: str | None = None,
        algorithms: Sequence[str] = ("HS256",),
        subject_claim: str = "sub",
        tenant_claim: str = "tenant_pid",
        jwks_cache_ttl: timedelta = timedelta(hours=24),
    ):
        """Initialize the JWT validator.

        Args:
            probe: Observability probe for logging events.
            key: Static verification key, used when no issuer is configured.
            issuer_url: The OIDC issuer URL.
            audience: Expected audience claim value, if any.
            algorithms: Accepted signing algorithms.
            subject_claim: JWT claim holding the caller id (default: sub).
            tenant_claim: JWT claim holding the tenant id (default: tenant_pid).
            jwks_cache_ttl: How long to cache JWKS keys (default: 24 hours).

        Raises:
            ValueError: If neither a key nor an issuer is configured.
        """
        if not key and not issuer_url:
            raise ValueError("JWTValidator needs a static key or an issuer URL")
        self._probe = probe
        self._key = key
        self._issuer_url = issuer_url.rstrip("/") if issuer_url else None
        self._audience = audience
        self._algorithms = list(algorithms)
        self._subject_claim = subject_claim
        self._tenant_claim = tenant_claim
        self._jwks_cache_ttl = jwks_cache_ttl

        # JWKS cache
        self._jwks: dict[str, Any] | None = None
        self._jwks_fetched_at: datetime | None = None
        self._jwks_lock = asyncio.Lock()

    async def validate_token(self, token: str) -> TokenClaims:
        """Validate JWT and return claims.

        Args:
            token: The JWT token string.

        Returns:
            TokenClaims containing the validated claims.

        Raises:
            InvalidTokenError: If token is invalid, expired, or verification fails.
        """
        # First, do a quick check for malformed tokens
        try:
            unverified_header = jwt.get_unverified_header(token)
        except JWTError as e:
            self._probe.token_validation_failed(reason=f"Malformed token: {e}")
            raise InvalidTokenError(f"Invalid token format: {e}") from e

        if not unverified_header:
            self._probe.token_validation_failed(reason="Missing token header")
            raise InvalidTokenError("Invalid token: missing header")

        key: Any = await self._get_jwks() if self._issuer_url else self._key

        try:
            claims = jwt.decode(
                token=token,
                key=key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer_url,
                options={
                    "verify_signature": True,
                    "verify_aud": self._audience is not None,
                    "verify_iss": self._issuer_url is not None,
                    "verify_exp": True,
                    "verify_iat": True,
                },
            )
        except ExpiredSignatureError as e:
            self._probe.token_validation_failed(reason="Token expired")
            raise InvalidTokenError("Token has expired") from e
        except JWTClaimsError as e:
            error_msg = str(e).lower()
            if "audience" in error_msg:
                self._probe.token_validation_failed(reason="Invalid audience")
                raise InvalidTokenError("Invalid audience claim") from e
            if "issuer" in error_msg:
                self._probe.token_validation_failed(reason="Invalid issuer")
                raise InvalidTokenError("Invalid issuer claim") from e
            self._probe.token_validation_failed(reason=f"Claims error: {e}")
            raise InvalidTokenError(f"Invalid token claims: {e}") from e
        except JWTError as e:
            error_msg = str(e).lower()
            if "signature" in error_msg:
                self._probe.token_validation_failed(reason="Invalid signature")
                raise InvalidTokenError("Invalid token signature") from e
            self._probe.token_validation_failed(reason=f"JWT error: {e}")
            raise InvalidTokenError(f"Invalid token: {e}") from e

        user_id = claims.get(self._subject_claim)
        if user_id is None:
            self._probe.token_validation_failed(
                reason=f"Missing {self._subject_claim} claim"
            )
            raise InvalidTokenError(f"Missing required claim: {self._subject_claim}")

        # Absent or empty means the caller is not tenant-scoped
        tenant_pid = claims.get(self._tenant_claim) or None

        self._probe.token_validated(
            user_id=str(user_id), tenant_scoped=tenant_pid is not None
        )

        return TokenClaims(
            sub=str(user_id),
            tenant_pid=str(tenant_pid) if tenant_pid is not None else None,
        )

    async def _get_jwks(self) -> dict[str, Any]:
        """Get JWKS, fetching from issuer if cache expired.

        Returns:
            The JWKS dictionary with keys.

        Raises:
            InvalidTokenError: If JWKS cannot be fetched.
        """
        # Check if cache is still valid (without lock for quick check)
        if self._is_cache_valid():
            self._probe.jwks_cache_hit()
            return self._jwks  # type: ignore[return-value]

        async with self._jwks_lock:
            # Double-check after acquiring lock
            if self._is_cache_valid():
                self._probe.jwks_cache_hit()
                return self._jwks  # type: ignore[return-value]

            return await self._fetch_jwks()

    def _is_cache_valid(self) -> bool:
        """Check if JWKS cache is still valid."""
        if self._jwks is None or self._jwks_fetched_at is None:
            return False

        now = datetime.now(tz=timezone.utc)
        return (now - self._jwks_fetched_at) < self._jwks_cache_ttl

    async def _fetch_jwks(self) -> dict[str, Any]:
        """Fetch JWKS from the OIDC provider via its discovery document.

        Raises:
            InvalidTokenError: If JWKS cannot be fetched.
        """
        try:
            async with httpx.AsyncClient() as client:
                openid_config_url = (
                    f"{self._issuer_url}/.well-known/openid-configuration"
                )
                config_response = await client.get(openid_config_url)
                config_response.raise_for_status()
                openid_config = config_response.json()

                jwks_uri = openid_config.get("jwks_uri")
                if not jwks_uri:
                    self._probe.jwks_fetch_failed(
                        error="Missing jwks_uri in OpenID configuration"
                    )
                    raise InvalidTokenError(
                        "OIDC provider missing jwks_uri in configuration"
                    )

                jwks_response = await client.get(jwks_uri)
                jwks_response.raise_for_status()
                jwks = jwks_response.json()

                self._jwks = jwks
                self._jwks_fetched_at = datetime.now(tz=timezone.utc)

                self._probe.jwks_fetched(key_count=len(jwks.get("keys", [])))
                return jwks

        except httpx.HTTPError as e:
            self._probe.jwks_fetch_failed(error=str(e))
            raise InvalidTokenError(
                f"Failed to fetch JWKS from OIDC provider: {e}"
            ) from e
        except (ValueError, KeyError, AttributeError) as e:
            self._probe.jwks_fetch_failed(error=str(e))
            raise InvalidTokenError(f"Unexpected JWKS response: {e}") from e
