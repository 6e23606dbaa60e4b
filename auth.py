from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional

from fastapi import Request, Response

from config import settings
from models import ActingAs


class AdminPasswordNotSetError(RuntimeError):
    """The server has no shared owner secret configured."""


def owner_token() -> Optional[str]:
    # Cookie value derived from the shared secret; None while no secret is set.
    if not settings.admin_password:
        return None
    return hmac.new(
        settings.admin_password.encode(), b"owner", hashlib.sha256
    ).hexdigest()


def get_acting_as(request: Request) -> ActingAs:
    """Owner if the request carries a valid owner cookie, otherwise guest."""
    expected = owner_token()
    presented = request.cookies.get(settings.owner_cookie_name)
    if expected and presented and secrets.compare_digest(presented, expected):
        return ActingAs.OWNER
    return ActingAs.GUEST


def password_matches(candidate: str) -> bool:
    expected = settings.admin_password
    if not expected:
        raise AdminPasswordNotSetError()
    return secrets.compare_digest(candidate.encode(), expected.encode())


def set_owner_cookie(response: Response) -> None:
    response.set_cookie(
        settings.owner_cookie_name,
        owner_token(),
        max_age=settings.owner_cookie_max_age,
        httponly=True,
        secure=settings.owner_cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_owner_cookie(response: Response) -> None:
    response.delete_cookie(settings.owner_cookie_name, path="/")
