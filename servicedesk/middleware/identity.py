"""
Identity middleware — resolves the calling actor from a bearer token.

The identity collaborator issues tokens; this service trusts their claims
once the signature checks out. For every /api/ request (except health and
pre-flight) it sets:

    g.actor_id    — int user id from the ``sub`` claim
    g.actor_role  — "student" | "admin"

Routes then declare their needs with decorators:

    @request_bp.route("/<int:request_id>/status", methods=["PUT"])
    @require_role("admin")
    def update_status(request_id): ...
"""

import functools
import logging

import jwt as pyjwt
from flask import g, request

from servicedesk.services.token_service import decode_access_token
from servicedesk.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that never require a token
PUBLIC_PREFIXES = (
    "/api/health",
)


def current_actor() -> tuple[int | None, str | None]:
    """Return ``(actor_id, role)`` for the current request."""
    return getattr(g, "actor_id", None), getattr(g, "actor_role", None)


def init_identity_middleware(app):
    """Register the bearer-token parser as a before_request hook."""

    @app.before_request
    def _resolve_identity():
        g.actor_id = None
        g.actor_role = None

        path = request.path
        if not path.startswith("/api/") or request.method == "OPTIONS":
            return None
        for prefix in PUBLIC_PREFIXES:
            if path.startswith(prefix):
                return None

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return api_error(E.UNAUTHENTICATED, "Not authorized, no token")

        token = auth_header[7:].strip()
        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            return api_error(E.UNAUTHENTICATED, "Not authorized, token expired")
        except pyjwt.InvalidTokenError as exc:
            logger.warning("Rejected bearer token on %s: %s", path, exc)
            return api_error(E.UNAUTHENTICATED, "Not authorized, token failed")

        g.actor_id = payload["user_id"]
        g.actor_role = payload["role"]
        return None


def require_role(*roles: str):
    """
    Decorator: require the resolved actor to hold one of ``roles``.

    Usage:
        @require_role("admin")
        def overview(): ...
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            actor_id, role = current_actor()
            if actor_id is None:
                return api_error(E.UNAUTHENTICATED, "Not authorized")
            if role not in roles:
                logger.warning(
                    "Access denied: role '%s' tried to access %s-only endpoint %s",
                    role, "/".join(roles), request.path,
                    extra={"actor_id": actor_id, "role": role},
                )
                return api_error(E.FORBIDDEN, f"User role '{role}' is not authorized to access this route")
            return f(*args, **kwargs)
        return decorated
    return decorator
