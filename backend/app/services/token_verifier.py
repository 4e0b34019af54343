"""
NoteGist Backend — Bearer Token Verifier
==========================================

What:  Verifies the `Authorization: Bearer <jwt>` header of summarize requests.
Why:   Provider calls cost money; only callers holding a token minted by the
       configured issuer for this audience may trigger them.
How:   PyJWT's PyJWKClient resolves the signing key from the issuer's JWKS
       endpoint (it caches the key set and refetches on unknown `kid`, which
       covers key rotation). jwt.decode then checks signature, `iss`, `aud`
       and `exp`.
Who:   One process-wide instance, exposed to routes through the
       get_token_verifier dependency.

Failure details (all are 401 unauthorized):
    no header / "Bearer " with no token  → "Missing bearer token"
    any scheme other than Bearer         → "Malformed authorization scheme"
    issuer or audience unset             → "Authentication is not configured"
    key set unreachable / unknown kid    → "Unable to resolve token signing key"
    expired / wrong iss / wrong aud / bad signature → specific detail
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

import jwt
from starlette.concurrency import run_in_threadpool

from app.config import Settings, settings
from app.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthClaims:
    """
    Verified token claims for the duration of one request.

    Only `subject` is ever logged; the full claim set stays out of logs.
    """

    subject: Optional[str]
    issuer: str
    claims: Mapping[str, Any] = field(repr=False)

    @classmethod
    def from_decoded(cls, decoded: dict) -> "AuthClaims":
        return cls(
            subject=decoded.get("sub"),
            issuer=decoded.get("iss", ""),
            claims=MappingProxyType(dict(decoded)),
        )


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Split an Authorization header into its bearer token.

    Raises:
        UnauthorizedError: header missing, scheme not Bearer, or token empty.
    """
    if not authorization or not authorization.strip():
        raise UnauthorizedError(detail="Missing bearer token")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        raise UnauthorizedError(detail="Malformed authorization scheme")

    token = token.strip()
    if not token:
        raise UnauthorizedError(detail="Missing bearer token")
    return token


class TokenVerifier:
    """
    Validates bearer tokens against a remote signing-key set.

    Read-only after construction, so a single instance is shared by all
    concurrent requests. Key caching lives inside PyJWKClient.
    """

    def __init__(
        self,
        issuer: str,
        audience: str,
        jwks_url: str,
        algorithms: Optional[List[str]] = None,
        jwks_cache_seconds: int = 300,
    ):
        self.issuer = issuer
        self.audience = audience
        self.jwks_url = jwks_url
        self.algorithms = algorithms or ["RS256"]
        self._jwks_client: Optional[jwt.PyJWKClient] = None
        if self.is_configured:
            self._jwks_client = jwt.PyJWKClient(
                jwks_url,
                cache_keys=True,
                lifespan=max(jwks_cache_seconds, 1),
            )

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenVerifier":
        verifier = cls(
            issuer=config.auth_issuer,
            audience=config.auth_audience,
            jwks_url=config.resolved_jwks_url,
            algorithms=config.auth_algorithms_list,
            jwks_cache_seconds=config.auth_jwks_cache_seconds,
        )
        if verifier.is_configured:
            logger.info(
                "TokenVerifier initialized (issuer=%s, audience=%s, jwks=%s)",
                verifier.issuer,
                verifier.audience,
                verifier.jwks_url,
            )
        else:
            logger.warning("TokenVerifier not configured: all authenticated requests will be rejected")
        return verifier

    @property
    def is_configured(self) -> bool:
        return bool(self.issuer and self.audience and self.jwks_url)

    async def verify(self, authorization: Optional[str]) -> AuthClaims:
        """
        Verify an Authorization header value.

        Returns:
            AuthClaims for the verified token.

        Raises:
            UnauthorizedError: for every rejection, with a diagnostic detail.
        """
        token = extract_bearer_token(authorization)

        if not self.is_configured or self._jwks_client is None:
            raise UnauthorizedError(detail="Authentication is not configured")

        # PyJWKClient does blocking HTTP; keep it off the event loop
        try:
            signing_key = await run_in_threadpool(
                self._jwks_client.get_signing_key_from_jwt, token
            )
        except jwt.PyJWKClientError as e:
            logger.warning("Signing key lookup failed for %s: %s", self.jwks_url, e)
            raise UnauthorizedError(
                detail="Unable to resolve token signing key",
                context={"error": str(e)},
            ) from e
        except jwt.DecodeError as e:
            raise UnauthorizedError(detail="Malformed token", context={"error": str(e)}) from e

        try:
            decoded = jwt.decode(
                token,
                signing_key.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthorizedError(detail="Token has expired") from e
        except jwt.InvalidIssuerError as e:
            raise UnauthorizedError(detail="Token issuer is not accepted") from e
        except jwt.InvalidAudienceError as e:
            raise UnauthorizedError(detail="Token audience is not accepted") from e
        except jwt.InvalidSignatureError as e:
            raise UnauthorizedError(detail="Token signature is invalid") from e
        except jwt.InvalidTokenError as e:
            raise UnauthorizedError(detail=f"Invalid token: {e}") from e

        claims = AuthClaims.from_decoded(decoded)
        logger.debug("Authenticated request for subject=%s", claims.subject)
        return claims


_verifier: Optional[TokenVerifier] = None


def get_token_verifier() -> TokenVerifier:
    """FastAPI dependency returning the process-wide verifier."""
    global _verifier
    if _verifier is None:
        _verifier = TokenVerifier.from_settings(settings)
    return _verifier
