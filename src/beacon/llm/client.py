"""Chat-completion client for conversations with the assistant.

Sends conversation history to the Anthropic Messages API with a system
prompt augmented by context from recent sessions stored in The Array.
"""

import logging
from typing import Any, Sequence

import requests
from pydantic import ValidationError

from ..array.client import ArrayClient
from ..config import DEFAULT_SYSTEM_PROMPT, ChatConfig
from ..errors import (
    ApiError,
    ChatHttpError,
    ChatInvalidResponseError,
    DecodingError,
    EmptyResponseError,
    NoAPIKeyError,
)
from ..models.chat import ChatApiMessage, ChatResponse
from ..models.conversation import Conversation, Message, MessageRole
from ..secret_store import ApiKeyManager

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "## CONTEXT FROM RECENT SESSIONS\n"
CONTEXT_MESSAGES_PER_SESSION = 3
CONTEXT_MESSAGE_CHARS = 200


def build_context_prompt(sessions: Sequence[Conversation] | None, max_sessions: int = 3) -> str:
    """Render recent sessions as a context block for the system prompt.

    At most max_sessions sessions and the last three messages of each are
    included; every quoted message is cut to 200 characters and followed by
    an ellipsis marker. Returns "" when there is nothing to quote.
    """
    if not sessions:
        return ""

    context = CONTEXT_HEADER
    for session in list(sessions)[:max_sessions]:
        created = session.created_at.strftime("%Y-%m-%d %H:%M")
        context += f"\n--- Session: {session.title} ({created}) ---\n"
        for msg in session.messages[-CONTEXT_MESSAGES_PER_SESSION:]:
            context += f"{msg.role.value.upper()}: {msg.content[:CONTEXT_MESSAGE_CHARS]}...\n"
    return context


def build_api_messages(history: Sequence[Message], user_message: str) -> list[dict[str, str]]:
    """History without system-role messages, plus the new user message last."""
    messages = [
        ChatApiMessage(role=msg.role.value, content=msg.content).model_dump()
        for msg in history
        if msg.role != MessageRole.SYSTEM
    ]
    messages.append(ChatApiMessage(role=MessageRole.USER.value, content=user_message).model_dump())
    return messages


class ChatClient:
    """Client for the chat-completion API.

    Stateless apart from the key manager it reads the API key from; callers
    should serialise calls per conversation to keep history ordered.
    """

    def __init__(
        self,
        array_client: ArrayClient,
        api_keys: ApiKeyManager,
        config: ChatConfig | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize chat client.

        Args:
            array_client: Source of recent sessions for context
            api_keys: Access to the stored API key
            config: Endpoint, model and prompt settings
            session: Transport to use; a new requests.Session if None
        """
        self.array_client = array_client
        self.api_keys = api_keys
        self.config = config or ChatConfig()
        self.session = session or requests.Session()

    @property
    def has_api_key(self) -> bool:
        return self.api_keys.has_api_key

    def send_message(
        self,
        user_message: str,
        history: Sequence[Message],
        system_prompt: str | None = None,
        model: str | None = None,
    ) -> str:
        """Send a user message with conversation history and return the reply text.

        Args:
            user_message: The new message, appended last
            history: Prior messages; system-role entries are not sent as messages
            system_prompt: Base system prompt (defaults to the configured one)
            model: Model id (defaults to the configured one)

        Returns:
            Text of the first content block of the completion

        Raises:
            NoAPIKeyError: No API key is stored; no request is made
            ApiError: Non-2xx response carrying {error: {message}}
            ChatHttpError: Other non-2xx response
            ChatInvalidResponseError: Transport failure
            DecodingError: 2xx body does not match the response schema
            EmptyResponseError: Completion has no content blocks
        """
        api_key = self.api_keys.get_api_key()
        if not api_key:
            raise NoAPIKeyError()

        context_prompt = build_context_prompt(
            self._fetch_recent_sessions(),
            max_sessions=self.config.context_sessions,
        )
        full_system_prompt = (system_prompt or self.config.system_prompt or DEFAULT_SYSTEM_PROMPT) + "\n\n" + context_prompt

        body = {
            "model": model or self.config.model,
            "max_tokens": self.config.max_tokens,
            "system": full_system_prompt,
            "messages": build_api_messages(history, user_message),
        }
        headers = {
            "content-type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.config.api_version,
        }

        response = self._post(body, headers)
        return self._parse_response(response)

    def _fetch_recent_sessions(self) -> list[Conversation]:
        # Context is best-effort: any failure leaves the context block empty.
        try:
            return self.array_client.get_recent_sessions(limit=self.config.context_sessions)
        except Exception as e:
            logger.warning("Continuing without session context: %s", e)
            return []

    def _post(self, body: dict[str, Any], headers: dict[str, str]) -> requests.Response:
        try:
            response = self.session.post(
                self.config.api_url,
                json=body,
                headers=headers,
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error("Chat request failed: %s", e)
            raise ChatInvalidResponseError(str(e)) from e

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int):
            raise ChatInvalidResponseError()

        logger.debug("POST %s -> %s", self.config.api_url, status_code)
        if not 200 <= status_code <= 299:
            message = self._extract_error_message(response)
            if message is not None:
                raise ApiError(message)
            raise ChatHttpError(status_code)
        return response

    @staticmethod
    def _extract_error_message(response: requests.Response) -> str | None:
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return None

    @staticmethod
    def _parse_response(response: requests.Response) -> str:
        try:
            result = ChatResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise DecodingError(str(e)) from e

        if not result.content:
            raise EmptyResponseError()
        return result.content[0].text
