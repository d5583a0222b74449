"""GitHub OAuth client."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from shortlinks.database.models import Identity


class OAuthError(Exception):
    """The OAuth exchange with GitHub failed."""


class GitHubOAuthClient:
    """Authorization-code flow against GitHub."""
    
    AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    USER_URL = "https://api.github.com/user"
    
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the OAuth client.
        
        Args:
            client_id: GitHub OAuth app client id
            client_secret: GitHub OAuth app client secret
            redirect_uri: Callback URL; GitHub uses the app default when None
            http_client: Optional httpx client (tests pass a mocked transport)
            logger: Optional logger instance
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.http = http_client or httpx.AsyncClient(timeout=10.0)
        self.logger = logger or logging.getLogger(__name__)
    
    def authorization_url(self, state: str) -> str:
        params = {"client_id": self.client_id, "state": state}
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"
    
    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for an access token."""
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
        }
        if self.redirect_uri:
            data["redirect_uri"] = self.redirect_uri
        
        response = await self.http.post(
            self.TOKEN_URL,
            data=data,
            headers={"Accept": "application/json"},
        )
        if response.status_code != 200:
            raise OAuthError(f"Token exchange failed with status {response.status_code}")
        
        payload = response.json()
        if "error" in payload or not payload.get("access_token"):
            raise OAuthError(f"Token exchange failed: {payload.get('error_description') or payload.get('error')}")
        return payload["access_token"]
    
    async def fetch_profile(self, access_token: str) -> Dict[str, Any]:
        response = await self.http.get(
            self.USER_URL,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/vnd.github+json",
            },
        )
        if response.status_code != 200:
            raise OAuthError("Failed to fetch GitHub user profile")
        return response.json()
    
    async def authenticate(self, code: str) -> Identity:
        """Run the code exchange and return the signed-in identity."""
        token = await self.exchange_code(code)
        profile = await self.fetch_profile(token)
        identity = Identity(
            login=profile["login"],
            profile_url=profile.get("html_url"),
            avatar_url=profile.get("avatar_url"),
        )
        self.logger.info(f"GitHub sign-in: {identity.login}")
        return identity
    
    async def close(self) -> None:
        await self.http.aclose()
