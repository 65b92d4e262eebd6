"""FastAPI dependencies for tenant-scoped request handling.

Tenancy objects are created once in the application lifespan and stored on
``app.state``; these dependencies read them from there. Resolution errors
are translated to HTTP responses here and nowhere else.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.settings import get_auth_settings
from shared_kernel.auth import InvalidTokenError, JWTValidator
from shared_kernel.auth.observability import DefaultJWTValidatorProbe
from tenancy.application.registry import TenantRegistry
from tenancy.application.resolver import TenantResolver
from tenancy.application.services import TenantLifecycleService
from tenancy.domain.connection import TenantConnection
from tenancy.domain.value_objects import IdentityClaim, TenantId
from tenancy.ports.exceptions import (
    NotProvisionedError,
    NotTenantScopedError,
    UnknownTenantError,
)

bearer_scheme = HTTPBearer(auto_error=False)

_WWW_AUTHENTICATE = {"WWW-Authenticate": "Bearer"}
_RETRY_AFTER_SECONDS = "30"


@lru_cache
def get_jwt_validator() -> JWTValidator:
    """Get cached JWT validator.

    A single instance is reused across requests so the JWKS cache survives.
    """
    settings = get_auth_settings()
    return JWTValidator(
        probe=DefaultJWTValidatorProbe(),
        key=settings.jwt_secret.get_secret_value() or None,
        issuer_url=settings.oidc_issuer_url,
        audience=settings.oidc_audience,
        algorithms=settings.jwt_algorithms,
        subject_claim=settings.subject_claim,
        tenant_claim=settings.tenant_claim,
        jwks_cache_ttl=timedelta(seconds=settings.jwks_cache_ttl_seconds),
    )


def get_tenant_registry(request: Request) -> TenantRegistry:
    """Get the process-wide tenant registry."""
    return request.app.state.tenant_registry


def get_tenant_resolver(request: Request) -> TenantResolver:
    """Get the tenant resolver."""
    return request.app.state.tenant_resolver


def get_tenant_lifecycle_service(request: Request) -> TenantLifecycleService:
    """Get the service that onboards and offboards tenants at runtime."""
    return request.app.state.tenant_lifecycle


async def get_identity_claim(
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> IdentityClaim:
    """Decode the bearer token into an identity claim.

    Raises:
        HTTPException 401: If the token is missing or invalid, or its tenant
            claim is not a valid tenant id
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers=_WWW_AUTHENTICATE,
        )

    try:
        claims = await validator.validate_token(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers=_WWW_AUTHENTICATE,
        ) from e

    tenant_id: TenantId | None = None
    if claims.tenant_pid is not None:
        try:
            tenant_id = TenantId.from_string(claims.tenant_pid)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid tenant claim",
                headers=_WWW_AUTHENTICATE,
            ) from e

    return IdentityClaim(subject=claims.sub, tenant_public_id=tenant_id)


async def get_tenant_connection(
    claim: Annotated[IdentityClaim, Depends(get_identity_claim)],
    resolver: Annotated[TenantResolver, Depends(get_tenant_resolver)],
) -> TenantConnection:
    """Resolve the caller's tenant connection.

    Raises:
        HTTPException 400: If the caller is not tenant-scoped
        HTTPException 404: If the tenant does not exist or was soft-deleted
        HTTPException 503: If the tenant is not provisioned yet
    """
    try:
        return await resolver.resolve(claim)
    except NotTenantScopedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request is not scoped to a tenant",
        ) from e
    except UnknownTenantError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant {e.public_id} not found",
        ) from e
    except NotProvisionedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Tenant {e.public_id} is not available",
            headers={"Retry-After": _RETRY_AFTER_SECONDS},
        ) from e


async def get_tenant_session(
    connection: Annotated[TenantConnection, Depends(get_tenant_connection)],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on the caller's tenant database.

    The session does NOT auto-commit. Callers manage transactions with
    `async with session.begin()`.

    Raises:
        HTTPException 503: If the tenant was offboarded after resolution
    """
    try:
        session = connection.session()
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Tenant {connection.public_id} is not available",
            headers={"Retry-After": _RETRY_AFTER_SECONDS},
        ) from e

    async with session:
        yield session
