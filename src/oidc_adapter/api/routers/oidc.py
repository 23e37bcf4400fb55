"""OIDC login and callback endpoints.

Implements the caller side of the authorization code flow:
- /oidc/login stores the state in an HttpOnly cookie and redirects
- /oidc/callback checks the returned state against the cookie, then
  links the provider identity to a local user (creating one if needed)
"""

import secrets
from typing import Annotated, Any

import httpx
from authlib.integrations.base_client import OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger
from pydantic import BaseModel, Field

from oidc_adapter.auth.errors import DiscoveryError, ProviderResponseError
from oidc_adapter.auth.provider_oidc import OIDCProvider
from oidc_adapter.settings import settings

router = APIRouter(prefix="/oidc", tags=["OIDC"])

# Userinfo claims copied onto newly created users
USER_ATTRIBUTE_CLAIMS = ("email", "email_verified", "name", "preferred_username")


class CallbackResult(BaseModel):
    """Callback response."""

    user_id: str = Field(description="Local user ID")
    created: bool = Field(description="Whether the user was created by this callback")
    provider_user_id: str = Field(description="Subject at the provider")


def get_provider(request: Request) -> OIDCProvider:
    """Provider attached to the application at startup."""
    return request.app.state.provider


Provider = Annotated[OIDCProvider, Depends(get_provider)]


def user_attributes(provider_user: dict[str, Any]) -> dict[str, Any]:
    """Select the userinfo claims stored on a new local user."""
    return {
        claim: provider_user[claim]
        for claim in USER_ATTRIBUTE_CLAIMS
        if claim in provider_user
    }


@router.get("/login")
async def login(provider: Provider) -> RedirectResponse:
    """Redirect the browser to the provider's authorization endpoint."""
    url, state = provider.get_authorization_url()

    response = RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    response.set_cookie(
        settings.state_cookie_name,
        state,
        max_age=settings.state_cookie_max_age,
        httponly=True,
        secure=settings.state_cookie_secure,
        samesite="lax",
        path="/",
    )
    return response


@router.get("/callback")
async def callback(
    request: Request,
    provider: Provider,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
) -> JSONResponse:
    """Handle the provider redirect.

    Returns:
        CallbackResult for the linked or created user

    Raises:
        HTTPException: 400 on missing code or state mismatch, 401 when the
            exchange or id_token is rejected, 502 when the provider is
            unreachable or cannot verify its id_tokens
    """
    if error:
        logger.warning(f"Provider returned error: {error} {error_description or ''}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_description or error,
        )

    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing code")

    stored_state = request.cookies.get(settings.state_cookie_name)
    if not state or not stored_state or not secrets.compare_digest(state, stored_state):
        logger.warning("OIDC callback state mismatch")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid state")

    try:
        session = await provider.validate_callback(code)
    except (OAuthError, ProviderResponseError) as e:
        logger.warning(f"OIDC callback rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
        ) from e
    except (httpx.HTTPError, DiscoveryError) as e:
        logger.error(f"OIDC provider unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Identity provider unavailable",
        ) from e

    created = session.existing_user is None
    user = session.existing_user or await session.create_user(
        user_attributes(session.provider_user)
    )

    response = JSONResponse(
        CallbackResult(
            user_id=user.user_id,
            created=created,
            provider_user_id=session.provider_key.provider_user_id,
        ).model_dump()
    )
    response.delete_cookie(settings.state_cookie_name, path="/")
    return response
