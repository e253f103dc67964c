from __future__ import annotations

from fastapi import HTTPException, Request

from streamshare_core.auth.jwt import caller_from_claims, decode_jwt
from streamshare_core.auth.types import CallerIdentity
from streamshare_core.errors import AuthError
from streamshare_core.logging import get_logger

logger = get_logger(__name__)


def optional_caller(request: Request) -> CallerIdentity | None:
    """Caller identity from a bearer token; ``None`` when no token is sent.

    A token that is present but fails verification is rejected with 401
    rather than silently downgraded to anonymous.
    """
    tokens = _extract_bearer_tokens(request)
    if not tokens:
        return None
    last_exc: AuthError | None = None
    for token in tokens:
        try:
            return caller_from_claims(decode_jwt(token))
        except AuthError as exc:
            last_exc = exc
            continue
    logger.info(
        "Rejected bearer token",
        extra={"error_message": str(last_exc) if last_exc else None},
    )
    raise HTTPException(status_code=401, detail="Unauthorized") from last_exc


def _extract_bearer_tokens(request: Request) -> list[str]:
    tokens: list[str] = []
    for header_name in ("authorization", "x-forwarded-authorization"):
        header = request.headers.get(header_name)
        token = _parse_bearer_token(header)
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def _parse_bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None
