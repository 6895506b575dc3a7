"""HTTP client for outbound workflow webhooks."""

from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict, field_validator


class WebhookError(Exception):
    """Raised when a webhook call fails."""

    pass


class WebhookRequest(BaseModel):
    """An outbound webhook call."""

    model_config = ConfigDict(frozen=True)

    url: str
    method: Literal["GET", "POST", "PUT", "DELETE"] = "POST"
    headers: dict[str, str] = {}
    body: str | None = None

    @field_validator("url")
    @classmethod
    def url_is_http(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("url is required")
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


class WebhookResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str


class WebhookClient:
    """Sends webhook requests with httpx."""

    def __init__(self, timeout: float = 30.0):
        """Initialize client with timeout."""
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = timeout

    def send(self, request: WebhookRequest) -> WebhookResponse:
        """Send the request. Responses with status >= 400 raise WebhookError."""
        content = request.body if request.method != "GET" else None

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    content=content,
                )
        except httpx.ConnectError as e:
            raise WebhookError(f"Connection failed: {e}") from e
        except httpx.TimeoutException as e:
            raise WebhookError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise WebhookError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            raise WebhookError(f"HTTP {response.status_code}: {response.text}")

        return WebhookResponse(status_code=response.status_code, body=response.text)
