"""Integration tests for short links."""

import asyncio
import json

import fakeredis
import httpx
import pytest
from starlette.requests import Request

from config import Config
from shortlinks.database import RedisLinkStore
from shortlinks.service import LinkService
from shortlinks.shortcode import ShortCodeGenerator
from shortlinks.common.logging_config import setup_logging
from web_app import create_app


@pytest.mark.asyncio
class TestIntegration:
    """End-to-end integration tests."""

    async def test_full_link_lifecycle(self, oauth):
        """Sign in, create a link, follow it, watch the click arrive."""
        logger = setup_logging(level="DEBUG")

        # Initialize components
        store = RedisLinkStore(
            "redis://fake",
            client=fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True),
            logger=logger,
        )
        service = LinkService(
            store=store,
            short_code_generator=ShortCodeGenerator(default_length=12),
            logger=logger,
        )
        config = Config(
            store_url="redis://fake",
            base_url="http://testserver",
            github_client_id="test-client-id",
            github_client_secret="test-client-secret",
        )
        app = create_app(store=store, service=service, oauth=oauth, config=config)

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            # 1. Sign in through the OAuth callback
            signin = await client.get("/oauth/signin")
            state = signin.cookies["oauth_state"]
            client.cookies.set("oauth_state", state)

            callback = await client.get("/oauth/callback", params={"code": "good", "state": state})
            assert callback.status_code == 303
            session_id = callback.cookies["session"]
            client.cookies.set("session", session_id)

            # 2. Create a link through the form handler
            create_response = await client.post("/links", data={"longUrl": "https://example.com/test"})
            assert create_response.status_code == 303

            links = await service.list_links("monalisa")
            assert len(links) == 1
            short_code = links[0].short_code

            # 3. Open the live feed for it
            scope = {
                "type": "http",
                "method": "GET",
                "scheme": "http",
                "server": ("testserver", 80),
                "root_path": "",
                "path": f"/realtime/{short_code}",
                "query_string": b"",
                "headers": [(b"host", b"testserver"), (b"cookie", f"session={session_id}".encode())],
                "app": app,
            }
            stream = await app.state.router.dispatch(Request(scope))
            assert stream.status_code == 200
            body = stream.body_iterator
            next_frame = asyncio.create_task(body.__anext__())
            await asyncio.sleep(0.05)

            # 4. Follow the short link
            redirect = await client.get(
                f"/{short_code}",
                headers={"X-Forwarded-For": "198.51.100.4", "CF-IPCountry": "CA"},
            )
            assert redirect.status_code == 303
            assert redirect.headers["location"] == "https://example.com/test"

            # 5. The feed pushes the click
            frame = await asyncio.wait_for(next_frame, timeout=5)
            payload = json.loads(frame[len("data: "):])
            assert payload["clickCount"] == 1
            assert payload["clickAnalytics"] == {
                "ipAddress": "198.51.100.4",
                "userAgent": f"python-httpx/{httpx.__version__}",
                "country": "CA",
            }
            await body.aclose()

            # 6. The API reports the click
            info = await client.get(f"/api/links/{short_code}")
            assert info.status_code == 200
            assert info.json()["click_count"] == 1
            assert info.json()["owner"] == "monalisa"

            # 7. Sign out
            signout = await client.get("/oauth/signout")
            assert signout.status_code == 303
            assert await store.get_user(session_id) is None
            assert (await client.get(f"/api/links/{short_code}/clicks/1")).status_code == 401

        await store.close()
