"""The Array API client for status, ingest, queue and session lookups."""

import logging
from typing import Any

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import DecodingError, HttpError, InvalidResponseError
from ..models.array import ArrayStatus, IngestRequest, IngestResponse, QueueResponse
from ..models.conversation import Conversation

logger = logging.getLogger(__name__)

_CONVERSATION_LIST = TypeAdapter(list[Conversation])


class ArrayClient:
    """Client for The Array HTTP API.

    Holds one configured requests.Session and no other cross-call state, so a
    single instance can be shared by every component that talks to The Array.
    """

    BASE_URL = "https://array.baldlygo.uk"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        """Initialize The Array client.

        Args:
            base_url: Backend address. Defaults to BASE_URL.
            timeout: Per-request timeout in seconds
            session: Transport to use; a new requests.Session if None
        """
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    # Status ---------------------------------------------------------------

    def get_status(self) -> ArrayStatus:
        """Check if The Array is online and get status info."""
        return self._decode(self._request("GET", "/api/v1/status"), ArrayStatus)

    # Ingest ---------------------------------------------------------------

    def ingest(self, request: IngestRequest) -> IngestResponse:
        """Save a note or artifact to The Array inbox.

        Returns the server's IngestResponse as-is; success=False is not raised.
        """
        response = self._request("POST", "/api/v1/ingest", json_payload=request.to_payload())
        result = self._decode(response, IngestResponse)
        if not result.success:
            logger.warning("Ingest of %r reported failure: %s", request.title, result.message)
        return result

    def save_note(self, title: str, content: str, tags: list[str] | None = None) -> IngestResponse:
        """Save a simple text note to The Array."""
        request = IngestRequest(
            source_type="note",
            title=title,
            content=content,
            device="beacon",
            tags=list(tags or []),
        )
        return self.ingest(request)

    def save_conversation(self, conversation: Conversation) -> IngestResponse:
        """Save a conversation as a session trace."""
        request = IngestRequest(
            source_type="session_trace",
            title=f"Beacon Conversation - {conversation.title}",
            content=conversation.to_markdown(),
            device="beacon",
            tags=["beacon", "conversation", "trace"],
        )
        return self.ingest(request)

    # Sessions -------------------------------------------------------------

    def get_recent_sessions(self, limit: int = 5) -> list[Conversation]:
        """Get recent conversations, in the order the server returns them."""
        response = self._request("GET", "/api/v1/sessions/recent", params={"limit": limit})
        data = self._json(response)
        try:
            return _CONVERSATION_LIST.validate_python(data)
        except (ValidationError, TypeError) as e:
            raise DecodingError(str(e)) from e

    # Queue ----------------------------------------------------------------

    def get_queue(self) -> QueueResponse:
        """Get items in the inbox queue."""
        return self._decode(self._request("GET", "/api/v1/ingest/queue"), QueueResponse)

    # Health ---------------------------------------------------------------

    def check_health(self) -> bool:
        """Check ingest endpoint health.

        True only if the body decodes to an object with status "ok". Non-2xx
        responses and undecodable bodies yield False instead of raising.
        """
        try:
            response = self._request("GET", "/api/v1/ingest/health")
            data = self._json(response)
        except (HttpError, DecodingError) as e:
            logger.info("Health check degraded to False: %s", e)
            return False
        return isinstance(data, dict) and data.get("status") == "ok"

    # Helpers --------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_payload: Any | None = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise InvalidResponseError(str(e)) from e

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int):
            raise InvalidResponseError()

        logger.debug("%s %s -> %s", method, path, status_code)
        if not 200 <= status_code <= 299:
            raise HttpError(status_code)
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodingError(str(e)) from e

    def _decode(self, response: requests.Response, model: type[BaseModel]):
        data = self._json(response)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodingError(str(e)) from e
