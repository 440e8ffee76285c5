"""
X (Twitter) API v2 client.

OAuth2 authorization code flow with PKCE through Authlib's httpx client;
identity lookup and posting are plain REST calls over httpx. Every
transport or HTTP failure surfaces as PostingApiError.
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from authlib.common.security import generate_token
from authlib.integrations.httpx_client import AsyncOAuth2Client

from postbot.errors import PostingApiError
from postbot.logging_config import bot_logger as logger

AUTHORIZE_URL = "https://twitter.com/i/oauth2/authorize"
TOKEN_URL = "https://api.twitter.com/2/oauth2/token"
ME_URL = "https://api.twitter.com/2/users/me"
TWEETS_URL = "https://api.twitter.com/2/tweets"

# Read profile, read posts, write posts, refresh token
SCOPES = ("users.read", "tweet.read", "tweet.write", "offline.access")

# PKCE verifier length, within the 43-128 characters RFC 7636 allows
VERIFIER_LENGTH = 64


@dataclass
class AuthorizationLink:
    url: str
    verifier: str
    state: str


@dataclass
class TokenGrant:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int  # seconds


def _check_token_response(response: httpx.Response) -> httpx.Response:
    """Compliance hook: reject token responses before Authlib parses them."""
    if response.status_code >= 400:
        logger.error(f"X token endpoint returned {response.status_code}: {response.text[:500]}")
        raise PostingApiError(
            f"X token endpoint returned {response.status_code}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise PostingApiError(
            "X token endpoint returned invalid JSON",
            status_code=response.status_code,
        ) from e

    if not isinstance(payload, dict) or not payload.get("access_token"):
        raise PostingApiError(
            "Token response has no access_token",
            status_code=response.status_code,
        )
    return response


class XClient:
    """
    Client for the X API on behalf of one OAuth2 app.

    The transport can be swapped (httpx.MockTransport) for tests.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.client_id = client_id
        self.client = httpx.AsyncClient(transport=transport, timeout=timeout)
        self.oauth = AsyncOAuth2Client(
            client_id=client_id,
            client_secret=client_secret,
            token_endpoint_auth_method="client_secret_basic",
            code_challenge_method="S256",
            transport=transport,
            timeout=timeout,
        )
        self.oauth.register_compliance_hook("access_token_response", _check_token_response)

    def build_authorization_url(
        self,
        redirect_uri: str,
        scopes: tuple[str, ...] = SCOPES,
    ) -> AuthorizationLink:
        """Authorization URL plus the verifier and state to keep until the callback."""
        verifier = generate_token(VERIFIER_LENGTH)
        url, state = self.oauth.create_authorization_url(
            AUTHORIZE_URL,
            code_verifier=verifier,
            redirect_uri=redirect_uri,
            scope=" ".join(scopes),
        )
        return AuthorizationLink(url=url, verifier=verifier, state=state)

    async def exchange_code(self, code: str, verifier: str, redirect_uri: str) -> TokenGrant:
        """Trade an authorization code for access and refresh tokens."""
        try:
            token = await self.oauth.fetch_token(
                TOKEN_URL,
                grant_type="authorization_code",
                code=code,
                code_verifier=verifier,
                redirect_uri=redirect_uri,
                client_id=self.client_id,
            )
        except httpx.HTTPError as e:
            logger.error(f"X token request transport error: {e}")
            raise PostingApiError(f"X token request failed: {e}") from e

        return TokenGrant(
            access_token=token["access_token"],
            refresh_token=token.get("refresh_token"),
            expires_in=int(token.get("expires_in", 7200)),
        )

    async def get_username(self, access_token: str) -> Optional[str]:
        """Username of the account the token belongs to."""
        payload, _ = await self._request(
            "GET",
            ME_URL,
            params={"user.fields": "username,name,profile_image_url"},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return (payload.get("data") or {}).get("username")

    async def create_post(self, access_token: str, text: str) -> str:
        """Publish `text` and return the new post id."""
        payload, status_code = await self._request(
            "POST",
            TWEETS_URL,
            json={"text": text},
            headers={"Authorization": f"Bearer {access_token}"},
        )

        post_id = (payload.get("data") or {}).get("id")
        if not post_id:
            raise PostingApiError("Post response has no id", status_code=status_code)
        return post_id

    async def _request(self, method: str, url: str, **kwargs) -> tuple[dict, int]:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"X API {method} {url} transport error: {e}")
            raise PostingApiError(f"X API request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"X API {method} {url} returned {response.status_code}: {response.text[:500]}"
            )
            raise PostingApiError(
                f"X API returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise PostingApiError(
                "X API returned invalid JSON",
                status_code=response.status_code,
            ) from e
        if not isinstance(payload, dict):
            raise PostingApiError(
                "X API returned an unexpected payload",
                status_code=response.status_code,
            )
        return payload, response.status_code

    async def close(self):
        """Close HTTP clients."""
        await self.client.aclose()
        await self.oauth.aclose()
