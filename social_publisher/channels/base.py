import httpx
import structlog

from ..domain.ports import SocialMediaPublisher
from ..domain.value_objects import PublishOutcome, caption_for

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 30.0


class ProtocolStepError(Exception):
    """A protocol step failed. The message is what the caller will see."""


class BasePublisher(SocialMediaPublisher):
    """Shared plumbing for the platform publishers."""

    DISPLAY_NAME = ""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        """HTTP client with a bounded wait on every request."""
        return httpx.AsyncClient(timeout=httpx.Timeout(timeout or self._timeout))

    def _caption(self, caption: str) -> str:
        return caption_for(self.platform, caption)

    def _success(self, post_id: str) -> PublishOutcome:
        return PublishOutcome.succeeded(self.platform, post_id)

    def _failure(self, error: str) -> PublishOutcome:
        return PublishOutcome.failed(self.platform, error)

    def _api_error(self, response: httpx.Response, default: str | None = None) -> str:
        """
        Upstream error text, passed through verbatim when the body has one.

        Graph API errors look like ``{"error": {"message": ...}}``, LinkedIn
        errors like ``{"message": ...}``.
        """
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str) and error:
                return error
            if data.get("message"):
                return str(data["message"])

        if default:
            return default
        name = self.DISPLAY_NAME or self.platform.value
        return f"{name} API error: {response.status_code}"
