"""Scorecard — Meta API Client.

Handles authentication, retry logic, rate limiting, and pagination.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from scorecard.config import settings
from scorecard.core.logging import get_logger

logger = get_logger("meta.client")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds

# OAuth / session / permission error codes from the Graph API
AUTH_ERROR_CODES = {102, 190, 10}
PERMISSION_ERROR_RANGE = range(200, 300)

RECONNECT_MESSAGE = (
    "Meta access token is invalid or expired. Please reconnect your Meta account."
)


class MetaAPIError(Exception):
    """Raised when Meta API returns an error."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        error_code: int = 0,
        details: Any = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.details = details if details is not None else message
        super().__init__(message)


class MetaAuthError(MetaAPIError):
    """Token invalid/expired or missing permission; the account must be reconnected."""


def _is_auth_failure(status_code: int, error_code: int) -> bool:
    return (
        status_code in (401, 403)
        or error_code in AUTH_ERROR_CODES
        or error_code in PERMISSION_ERROR_RANGE
    )


def normalize_ad_account_id(ad_account_id: str) -> str:
    """Meta addresses ad accounts as act_<id>."""
    if not ad_account_id or ad_account_id.startswith("act_"):
        return ad_account_id
    return f"act_{ad_account_id}"


def _error_body(response: httpx.Response) -> Any:
    """Decoded Graph API error body, or {} when the body is not JSON."""
    if not response.headers.get("content-type", "").startswith("application/json"):
        return {}
    try:
        return response.json()
    except ValueError:
        return {}


class MetaClient:
    """Async HTTP client for Meta Marketing API."""

    def __init__(
        self,
        access_token: str | None = None,
        ad_account_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.access_token = access_token or settings.meta_access_token
        self.ad_account_id = normalize_ad_account_id(
            ad_account_id or settings.meta_ad_account_id
        )
        self.base_url = f"{settings.meta_base_url}/{settings.meta_api_version}"
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _backoff(self, attempt: int) -> float:
        wait = self.retry_base_delay * (2 ** (attempt - 1))
        await asyncio.sleep(wait)
        return wait

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Make a request with retry + rate-limit handling."""
        params = dict(params or {})
        params["access_token"] = self.access_token

        client = await self._get_client()

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = await client.request(method, url, params=params)

                # Rate limited
                if resp.status_code == 429 and attempt < MAX_RETRIES:
                    logger.warning(
                        f"Rate limited (429). Retrying (attempt {attempt}/{MAX_RETRIES})",
                        extra={"status_code": 429},
                    )
                    await self._backoff(attempt)
                    continue

                resp.raise_for_status()
                try:
                    return resp.json()
                except ValueError as e:
                    # Gateways in front of Graph API answer with HTML pages
                    logger.error(
                        f"Meta API returned a non-JSON body: {resp.text[:200]!r}",
                        extra={"status_code": resp.status_code},
                    )
                    raise MetaAPIError(
                        "Invalid JSON response from Meta API",
                        status_code=502,
                        details=resp.text[:500],
                    ) from e

            except httpx.HTTPStatusError as e:
                body = _error_body(e.response)
                error = body.get("error", {}) if isinstance(body, dict) else {}
                error_msg = error.get("message", str(e))
                error_code = error.get("code", 0)
                status_code = e.response.status_code

                if attempt < MAX_RETRIES and status_code >= 500:
                    logger.warning(
                        f"Server error {status_code}. Retrying",
                        extra={"status_code": status_code},
                    )
                    await self._backoff(attempt)
                    continue

                logger.error(
                    f"Meta API error {status_code} (code {error_code}): {error_msg}",
                    extra={"status_code": status_code},
                )
                error_cls = (
                    MetaAuthError
                    if _is_auth_failure(status_code, error_code)
                    else MetaAPIError
                )
                raise error_cls(
                    error_msg, status_code, error_code, details=error or body or error_msg
                ) from e

            except httpx.RequestError as e:
                if attempt < MAX_RETRIES:
                    logger.warning(f"Request error: {e}. Retrying")
                    await self._backoff(attempt)
                    continue
                raise MetaAPIError(
                    f"Connection failed after {MAX_RETRIES} retries: {e}",
                    status_code=502,
                ) from e

        raise MetaAPIError("Max retries exhausted", status_code=502)

    # ── Pagination ──

    async def _paginated_get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        max_pages: int = 50,
    ) -> List[Dict[str, Any]]:
        """Fetch all pages of a paginated endpoint."""
        all_data: List[Dict[str, Any]] = []
        params = params or {}
        current_url = url

        for page in range(max_pages):
            result = await self._request(
                "GET", current_url, params if page == 0 else None
            )
            data = result.get("data", [])
            all_data.extend(data)

            # Check for next page
            paging = result.get("paging", {})
            next_url = paging.get("next")
            if not next_url:
                break
            current_url = next_url

        logger.info(f"Fetched {len(all_data)} records from {url}")
        return all_data

    # ── Token Validation ──

    async def validate_token(self) -> Dict[str, Any]:
        """Check if the access token is valid and return metadata."""
        url = f"{self.base_url}/debug_token"
        params = {"input_token": self.access_token}
        result = await self._request("GET", url, params)
        token_data = result.get("data", {})
        return {
            "valid": token_data.get("is_valid", False),
            "expires_at": token_data.get("expires_at", 0),
            "scopes": token_data.get("scopes", []),
            "app_id": token_data.get("app_id", ""),
        }
