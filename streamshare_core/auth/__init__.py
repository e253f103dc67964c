from streamshare_core.auth.jwt import JwtConfig, caller_from_claims, decode_jwt
from streamshare_core.auth.types import CallerIdentity

__all__ = [
    "CallerIdentity",
    "JwtConfig",
    "caller_from_claims",
    "decode_jwt",
]
