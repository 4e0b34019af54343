"""
NoteGist Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests never reach a real provider or JWKS endpoint; adapters and the
       verifier are replaced with in-process fakes.
How:   Environment is set before any app import; the HTTP client overrides the
       orchestrator and verifier dependencies of the FastAPI app.

Fixtures:
    ├── make_adapter:   builds a scripted ProviderAdapter that counts its calls
    ├── rsa_keypair:    RSA key pair for signing test JWTs
    ├── make_token:     signs a JWT with configurable claims
    ├── token_verifier: real TokenVerifier whose JWKS lookup returns the test key
    └── make_client:    HTTPX AsyncClient bound to the app with overrides
"""

import asyncio
import os
import time
from typing import Any, Dict, List, Optional, Sequence
from unittest.mock import MagicMock

# Override settings for testing BEFORE any app imports
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["AUTH_ISSUER"] = "https://issuer.test"
os.environ["AUTH_AUDIENCE"] = "notegist-api"
os.environ["LOG_LEVEL"] = "WARNING"

import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient

from app.services.llm_base import (
    GenerationResult,
    ProviderAdapter,
    ProviderName,
)
from app.services.orchestrator import SummaryOrchestrator
from app.services.token_verifier import TokenVerifier

TEST_ISSUER = "https://issuer.test"
TEST_AUDIENCE = "notegist-api"


class FakeAdapter(ProviderAdapter):
    """Adapter returning scripted results; records every text it receives."""

    def __init__(
        self,
        name: ProviderName,
        model: str,
        results: Sequence[GenerationResult],
        configured: bool = True,
        delay: float = 0.0,
    ):
        super().__init__(model=model, api_key="fake-key" if configured else "")
        self.name = name
        self._results = list(results)
        self.delay = delay
        self.calls: List[str] = []

    async def generate(self, text: str) -> GenerationResult:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        # Last scripted result repeats once the script runs out
        index = min(len(self.calls) - 1, len(self._results) - 1)
        return self._results[index]

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def make_adapter():
    """
    Factory for FakeAdapter.

    Usage:
        gemini = make_adapter(ProviderName.GEMINI, GenerationResult.ok("• a"))
    """

    def _make(
        name: ProviderName,
        *results: GenerationResult,
        model: Optional[str] = None,
        configured: bool = True,
        delay: float = 0.0,
    ) -> FakeAdapter:
        return FakeAdapter(
            name=name,
            model=model or f"{name.value}-test-model",
            results=results or (GenerationResult.ok("• summary"),),
            configured=configured,
            delay=delay,
        )

    return _make


@pytest.fixture(scope="session")
def rsa_keypair():
    """RSA key pair used to sign and verify test tokens."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


@pytest.fixture
def make_token(rsa_keypair):
    """Signs an RS256 JWT; keyword arguments override the default claims."""
    private_key, _ = rsa_keypair

    def _make(key=None, **overrides: Any) -> str:
        now = int(time.time())
        claims: Dict[str, Any] = {
            "iss": TEST_ISSUER,
            "aud": TEST_AUDIENCE,
            "sub": "user-123",
            "iat": now,
            "exp": now + 300,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return jwt.encode(claims, key or private_key, algorithm="RS256", headers={"kid": "test-key"})

    return _make


@pytest.fixture
def token_verifier(rsa_keypair):
    """Real TokenVerifier whose JWKS client hands back the test public key."""
    _, public_key = rsa_keypair
    verifier = TokenVerifier(
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
        jwks_url=f"{TEST_ISSUER}/.well-known/jwks.json",
    )
    jwks_client = MagicMock()
    jwks_client.get_signing_key_from_jwt.return_value = MagicMock(key=public_key)
    verifier._jwks_client = jwks_client
    return verifier


@pytest_asyncio.fixture
async def make_client(token_verifier):
    """
    Provides a factory for HTTPX AsyncClients bound to the FastAPI app.

    Usage:
        client = await make_client(orchestrator)
        response = await client.post("/api/summarize", ...)
    """
    from app.main import app
    from app.services.orchestrator import get_orchestrator
    from app.services.token_verifier import get_token_verifier

    clients: List[AsyncClient] = []

    async def _make(
        orchestrator: SummaryOrchestrator,
        verifier: Optional[TokenVerifier] = None,
        raise_app_exceptions: bool = True,
    ) -> AsyncClient:
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        app.dependency_overrides[get_token_verifier] = lambda: verifier or token_verifier
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()
