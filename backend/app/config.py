"""
NoteGist Backend — Application Configuration
==============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Provider ordering, model names, API keys and token-verification settings
       all come from the environment. They are read once and never change while
       the process is serving requests.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Provider configuration:
    PROVIDER_ORDER lists adapter identifiers in the order they are attempted.
    An adapter whose API key is empty is skipped at request time, so the same
    order works in development (no keys, demo answers) and production.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Adapter identifiers the factory knows how to build
KNOWN_PROVIDERS = ("gemini", "openai")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set the provider API keys and the
    AUTH_ISSUER / AUTH_AUDIENCE pair (requests are rejected without them).
    """

    # ── Provider Chain ────────────────────────────────────────────────────
    # What: Comma-separated adapter identifiers, highest preference first
    # Example: "gemini,openai" tries Gemini, then OpenAI, then the demo answer
    provider_order: str = Field(default="gemini,openai")

    @field_validator("provider_order")
    @classmethod
    def validate_provider_order(cls, v: str) -> str:
        """Rejects unknown or duplicated adapter identifiers at startup."""
        names = [name.strip().lower() for name in v.split(",") if name.strip()]
        unknown = [name for name in names if name not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(
                f"Unknown provider(s) {unknown}. Must be drawn from: {list(KNOWN_PROVIDERS)}"
            )
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate provider in PROVIDER_ORDER: {v!r}")
        return ",".join(names)

    @property
    def provider_order_list(self) -> List[str]:
        """Splits PROVIDER_ORDER into the ordered list the factory consumes."""
        return [name for name in self.provider_order.split(",") if name]

    # ── Google Gemini ─────────────────────────────────────────────────────
    # How to obtain: https://aistudio.google.com/app/apikey
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key; empty disables the Gemini adapter",
    )

    # Options: gemini-2.0-flash (free tier), gemini-2.5-flash-lite
    gemini_model: str = Field(default="gemini-2.0-flash")

    # ── OpenAI ────────────────────────────────────────────────────────────
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key; empty disables the OpenAI adapter",
    )
    openai_model: str = Field(default="gpt-4o-mini")

    # ── Token Verification ────────────────────────────────────────────────
    # What: Expected `iss` and `aud` claims of incoming bearer tokens
    # Why no defaults: an unset issuer/audience rejects every request (fail closed)
    auth_issuer: str = Field(default="")
    auth_audience: str = Field(default="")

    # What: JWKS endpoint serving the issuer's signing keys
    # Default: derived from the issuer as {issuer}/.well-known/jwks.json
    auth_jwks_url: Optional[str] = Field(default=None)

    # What: Accepted JWS algorithms, comma-separated
    auth_algorithms: str = Field(default="RS256")

    # What: Seconds PyJWKClient keeps a fetched key set before refetching
    auth_jwks_cache_seconds: int = Field(default=300, ge=0, le=86400)

    @property
    def auth_algorithms_list(self) -> List[str]:
        return [alg.strip() for alg in self.auth_algorithms.split(",") if alg.strip()]

    @property
    def resolved_jwks_url(self) -> str:
        """JWKS URL, falling back to the issuer's well-known location."""
        if self.auth_jwks_url:
            return self.auth_jwks_url
        if not self.auth_issuer:
            return ""
        return f"{self.auth_issuer.rstrip('/')}/.well-known/jwks.json"

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=4000, ge=1024, le=65535)

    # What: Ceiling on the request body size in bytes
    # Why 1MB: 20,000 characters of text fit comfortably, even as 4-byte UTF-8
    max_body_bytes: int = Field(default=1_048_576, ge=1024, le=10_485_760)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Provider Calls ────────────────────────────────────────────────────
    # What: Upper bound on a single adapter invocation, retries included
    # Why: A hung backend must not stall the request; on timeout the chain moves on
    provider_timeout_seconds: float = Field(default=30.0, gt=0, le=300)

    # What: Tenacity attempts per adapter for transient (network/5xx) failures only
    # Why default 1: One attempt per orchestration pass; later adapters are the fallback
    provider_retry_attempts: int = Field(default=1, ge=1, le=5)
    retry_min_wait: int = Field(default=1, ge=1, le=30)
    retry_max_wait: int = Field(default=5, ge=1, le=120)

    # What: Answer with the deterministic demo summary when every adapter fails
    # When False: exhaustion is reported as a classified provider error instead
    demo_fallback_enabled: bool = Field(default=True)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        Why:   Surfaces missing keys in the startup log instead of as
               puzzling demo answers or 401s later.
        """
        errors = []
        if not self.gemini_api_key and not self.openai_api_key:
            errors.append(
                "Neither GEMINI_API_KEY nor OPENAI_API_KEY is set; every request "
                "will receive the demo summary. Get a free Gemini key at "
                "https://aistudio.google.com/app/apikey"
            )
        if not self.auth_issuer or not self.auth_audience:
            errors.append(
                "AUTH_ISSUER and AUTH_AUDIENCE must both be set; until they are, "
                "every /api/summarize request is rejected with 401."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — imported throughout the application
settings = Settings()
