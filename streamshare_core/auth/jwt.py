from __future__ import annotations

import json
import os
import urllib.request
from dataclasses import dataclass
from typing import Any, cast

import jwt
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePublicKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jwt import PyJWK, PyJWKClient

from streamshare_core.auth.types import CallerIdentity
from streamshare_core.errors import AuthError

FIREBASE_X509_URI = (
    "https://www.googleapis.com/robot/v1/metadata/x509/"
    "securetoken@system.gserviceaccount.com"
)


@dataclass(frozen=True)
class JwtConfig:
    issuer: str | None
    audience: str | None
    jwks_uri: str | None
    algorithms: tuple[str, ...]
    hs256_secret: str | None
    public_key: str | None
    required_claims: tuple[str, ...]
    claim_uid: str
    claim_email: str
    claim_name: str
    claim_picture: str
    leeway_seconds: int


JwtKey = RSAPublicKey | EllipticCurvePublicKey | PyJWK | str | bytes


def load_jwt_config() -> JwtConfig:
    project_id = _env_str("AUTH_PROJECT_ID") or _env_str("GOOGLE_CLOUD_PROJECT")
    default_issuer = (
        f"https://securetoken.google.com/{project_id}" if project_id else None
    )
    return JwtConfig(
        issuer=_env_str("AUTH_ISSUER") or default_issuer,
        audience=_env_str("AUTH_AUDIENCE") or project_id,
        jwks_uri=_env_str("AUTH_JWKS_URI") or FIREBASE_X509_URI,
        algorithms=_split_env("AUTH_JWT_ALGORITHMS", default="RS256"),
        hs256_secret=_env_str("AUTH_JWT_HS256_SECRET"),
        public_key=_env_str("AUTH_JWT_PUBLIC_KEY"),
        required_claims=_split_env("AUTH_REQUIRED_CLAIMS", default="sub,exp,iat"),
        claim_uid=os.getenv("AUTH_CLAIM_UID", "sub"),
        claim_email=os.getenv("AUTH_CLAIM_EMAIL", "email"),
        claim_name=os.getenv("AUTH_CLAIM_NAME", "name"),
        claim_picture=os.getenv("AUTH_CLAIM_PICTURE", "picture"),
        leeway_seconds=int(os.getenv("AUTH_JWT_LEEWAY_SECONDS", "0")),
    )


def decode_jwt(token: str, *, config: JwtConfig | None = None) -> dict[str, Any]:
    config = config or load_jwt_config()
    key, algs = _resolve_key(token, config)
    options: dict[str, object] = {}
    if config.required_claims:
        options["require"] = list(config.required_claims)
    kwargs: dict[str, object] = {
        "key": key,
        "algorithms": list(algs),
        "leeway": config.leeway_seconds,
        "options": options,
    }
    if config.audience:
        kwargs["audience"] = config.audience
    if config.issuer:
        kwargs["issuer"] = config.issuer
    try:
        return jwt.decode(token, **kwargs)
    except jwt.PyJWTError as exc:
        raise AuthError("Invalid JWT") from exc


def caller_from_claims(
    claims: dict[str, Any],
    *,
    config: JwtConfig | None = None,
) -> CallerIdentity:
    config = config or load_jwt_config()
    uid = _coerce_str(claims.get(config.claim_uid)) or _coerce_str(
        claims.get("user_id")
    )
    if not uid:
        raise AuthError("JWT missing subject")
    return CallerIdentity(
        uid=uid,
        email=_coerce_str(claims.get(config.claim_email)),
        display_name=_coerce_str(claims.get(config.claim_name)),
        photo_url=_coerce_str(claims.get(config.claim_picture)),
        claims=claims,
    )


def _resolve_key(
    token: str,
    config: JwtConfig,
) -> tuple[JwtKey, tuple[str, ...]]:
    if config.hs256_secret:
        return config.hs256_secret, ("HS256",)
    if config.public_key:
        return config.public_key, config.algorithms
    if config.jwks_uri:
        if _looks_like_x509(config.jwks_uri):
            return _load_x509_key(token, config.jwks_uri), config.algorithms
        try:
            jwk_client = PyJWKClient(config.jwks_uri)
            signing_key = jwk_client.get_signing_key_from_jwt(token)
            alg = _token_alg(token) or config.algorithms[0]
            return cast(JwtKey, signing_key.key), (alg,)
        except Exception as exc:
            raise AuthError("Failed to fetch JWKS") from exc
    raise AuthError("JWT verification not configured")


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _split_env(name: str, *, default: str = "") -> tuple[str, ...]:
    raw = os.getenv(name, default)
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return tuple(items)


def _coerce_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _looks_like_x509(uri: str) -> bool:
    return "/metadata/x509/" in uri


def _load_x509_key(token: str, jwks_uri: str) -> JwtKey:
    try:
        header = jwt.get_unverified_header(token)
        kid = header.get("kid")
        if not kid:
            raise AuthError("JWT header missing kid")
    except AuthError:
        raise
    except Exception as exc:
        raise AuthError("JWT header invalid") from exc
    try:
        with urllib.request.urlopen(jwks_uri, timeout=10) as resp:
            payload = json.loads(resp.read().decode("utf-8"))
    except Exception as exc:
        raise AuthError("Failed to fetch x509 JWKS") from exc
    if not isinstance(payload, dict):
        raise AuthError("Invalid x509 JWKS payload")
    cert_pem = payload.get(kid)
    if not cert_pem:
        raise AuthError("JWT kid not found in x509 JWKS")
    try:
        cert = x509.load_pem_x509_certificate(str(cert_pem).encode("utf-8"))
        return cast(JwtKey, cert.public_key())
    except Exception as exc:
        raise AuthError("Failed to parse x509 certificate") from exc


def _token_alg(token: str) -> str | None:
    try:
        header = jwt.get_unverified_header(token)
    except Exception:
        return None
    alg = header.get("alg")
    if not alg:
        return None
    return str(alg)
