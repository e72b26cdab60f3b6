from __future__ import annotations

from functools import wraps
from typing import Callable, NamedTuple, Optional

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, TokenError
from .context import AuthContext


class Guards(NamedTuple):
    login_required: Callable
    roles_required: Callable


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def current_actor() -> AuthContext:
    return g.auth


def build_guards(auth_service) -> Guards:
    """Route decorators backed by ``auth_service.context_from_token``."""

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise TokenError("Not authorized, no token", error_code="NO_TOKEN")
            g.auth = auth_service.context_from_token(token)
            return view(*args, **kwargs)

        return wrapper

    def roles_required(*roles: Role):
        def decorator(view):
            @login_required
            @wraps(view)
            def wrapper(*args, **kwargs):
                actor: AuthContext = g.auth
                if not actor.is_super_admin and actor.role not in roles:
                    raise AuthorizationError(
                        f"Role {actor.role.value} is not authorized to access this route",
                        error_code="FORBIDDEN",
                    )
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return Guards(login_required=login_required, roles_required=roles_required)
