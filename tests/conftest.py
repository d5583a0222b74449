"""Pytest configuration and fixtures."""

import pytest
import fakeredis
import httpx
from typing import AsyncGenerator

from config import Config
from shortlinks.database import Identity, MemoryLinkStore, RedisLinkStore
from shortlinks.service import LinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging
from web_app import create_app
from web_app.auth import GitHubOAuthClient

SESSION_ID = "test-session"
OCTOCAT = Identity(
    login="octocat",
    profile_url="https://github.com/octocat",
    avatar_url="https://avatars.githubusercontent.com/u/583231",
)


def github_stub(request: httpx.Request) -> httpx.Response:
    """Stand-in for the GitHub token and user endpoints."""
    if request.url == GitHubOAuthClient.TOKEN_URL:
        if b"code=bad" in request.content:
            return httpx.Response(200, json={"error": "bad_verification_code"})
        return httpx.Response(200, json={"access_token": "gho_test", "token_type": "bearer"})
    if request.url == GitHubOAuthClient.USER_URL:
        return httpx.Response(200, json={
            "login": "monalisa",
            "html_url": "https://github.com/monalisa",
            "avatar_url": "https://avatars.githubusercontent.com/u/2",
            "email": "mona@example.com",
        })
    return httpx.Response(404)


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def memory_store(logger) -> MemoryLinkStore:
    return MemoryLinkStore(logger=logger)


@pytest.fixture
def redis_store(logger) -> RedisLinkStore:
    """Redis store backed by an isolated in-process fakeredis server."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    return RedisLinkStore("redis://fake", client=client, logger=logger)


@pytest.fixture(params=["memory", "redis"])
def store(request):
    """Each store backend in turn."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=12)


@pytest.fixture
def service(memory_store, short_code_generator, logger) -> LinkService:
    """Create service instance."""
    return LinkService(
        store=memory_store,
        short_code_generator=short_code_generator,
        logger=logger,
    )


@pytest.fixture
def config() -> Config:
    return Config(
        store_url="memory://",
        base_url="http://testserver",
        github_client_id="test-client-id",
        github_client_secret="test-client-secret",
        github_redirect_uri="http://testserver/oauth/callback",
    )


@pytest.fixture
async def oauth(logger) -> AsyncGenerator[GitHubOAuthClient, None]:
    client = GitHubOAuthClient(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="http://testserver/oauth/callback",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(github_stub)),
        logger=logger,
    )

    yield client

    await client.close()


@pytest.fixture
def app(memory_store, service, oauth, config):
    """Create test FastAPI app."""
    return create_app(
        store=memory_store,
        service=service,
        oauth=oauth,
        config=config,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Anonymous test client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def session_id() -> str:
    return SESSION_ID


@pytest.fixture
async def auth_client(app, memory_store) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Test client signed in as octocat."""
    await memory_store.store_user(SESSION_ID, OCTOCAT)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        cookies={"session": SESSION_ID},
    ) as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
