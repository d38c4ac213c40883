"""Conversation state machine: user turn, assistant reply, archive."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from pydantic import BaseModel, Field

from ..array.client import ArrayClient
from ..errors import BeaconError
from ..llm.client import ChatClient
from ..models.conversation import Conversation, Message, MessageRole
from ..state import StateChannel

logger = logging.getLogger(__name__)

NEW_CHAT_TITLE = "New Chat"


def _new_conversation() -> Conversation:
    return Conversation(title=NEW_CHAT_TITLE)


class ChatState(BaseModel):
    """Immutable snapshot of the chat screen state.

    error holds a failure of the chat call itself; archive_error holds a
    failure to archive an otherwise successful exchange.
    """

    conversation: Conversation = Field(default_factory=_new_conversation)
    is_loading: bool = False
    error: Optional[str] = None
    archive_error: Optional[str] = None
    current_input: str = ""

    model_config = {"frozen": True}


class ConversationOrchestrator:
    """Owns one live conversation and sequences each exchange.

    send_message() appends the user message, asks the chat client for a
    reply, appends the reply and archives the whole conversation in The
    Array. Every state change is published as a new ChatState snapshot.
    """

    def __init__(self, chat_client: ChatClient, array_client: ArrayClient):
        self.chat_client = chat_client
        self.array_client = array_client
        self._lock = threading.RLock()
        self._channel: StateChannel[ChatState] = StateChannel(ChatState())

    @property
    def state(self) -> ChatState:
        return self._channel.current

    @property
    def conversation(self) -> Conversation:
        return self.state.conversation

    def subscribe(self, listener: Callable[[ChatState], None]) -> Callable[[], None]:
        return self._channel.subscribe(listener)

    def _update(self, **changes) -> ChatState:
        with self._lock:
            snapshot = self.state.model_copy(update=changes)
            self._channel.publish(snapshot)
            return snapshot

    def set_input(self, text: str) -> ChatState:
        return self._update(current_input=text)

    def send_message(self, text: str | None = None) -> ChatState:
        """Send the pending input (or text, if given) and return the final state.

        Blank input is ignored. A call made while another send is in flight is
        ignored as well. Failures are reported in the returned state, never
        raised; the user message stays in the conversation.
        """
        with self._lock:
            current = self.state
            pending = current.current_input if text is None else text
            if not pending.strip() or current.is_loading:
                return current

            user_msg = Message(role=MessageRole.USER, content=pending)
            conversation = current.conversation.with_message(user_msg)
            started = current.model_copy(
                update={
                    "conversation": conversation,
                    "current_input": "",
                    "is_loading": True,
                    "error": None,
                    "archive_error": None,
                }
            )
            self._channel.publish(started)

        outcome: dict[str, Optional[str]] = {}
        try:
            reply = self.chat_client.send_message(
                user_message=pending,
                history=current.conversation.messages,
            )
            conversation, is_live = self._append_if_current(
                conversation, Message(role=MessageRole.ASSISTANT, content=reply)
            )
            if is_live:
                outcome["archive_error"] = self._archive(conversation)
        except BeaconError as e:
            logger.error("Chat request failed: %s", e)
            outcome["error"] = str(e)
        except Exception as e:
            logger.exception("Chat request failed")
            outcome["error"] = str(e) or type(e).__name__
        finally:
            # is_loading is cleared on every exit path, including interrupts.
            snapshot = self._finish(conversation, **outcome)
        return snapshot

    def _archive(self, conversation: Conversation) -> Optional[str]:
        """Save the conversation to The Array. Returns the failure message, if any."""
        try:
            self.array_client.save_conversation(conversation)
        except Exception as e:
            logger.warning("Failed to archive conversation %s: %s", conversation.id, e)
            return str(e) or type(e).__name__
        return None

    def _append_if_current(self, conversation: Conversation, message: Message) -> tuple[Conversation, bool]:
        with self._lock:
            updated = conversation.with_message(message)
            is_live = self.state.conversation.id == conversation.id
            if is_live:
                self._channel.publish(self.state.model_copy(update={"conversation": updated}))
            return updated, is_live

    def _finish(
        self,
        conversation: Conversation,
        error: Optional[str] = None,
        archive_error: Optional[str] = None,
    ) -> ChatState:
        with self._lock:
            changes = {"is_loading": False}
            # A clear_chat() during the round-trip replaced the conversation;
            # results for the discarded one are dropped.
            if self.state.conversation.id == conversation.id:
                changes.update(error=error, archive_error=archive_error)
            snapshot = self.state.model_copy(update=changes)
            self._channel.publish(snapshot)
            return snapshot

    def clear_chat(self) -> ChatState:
        """Replace the conversation with a new empty one. Nothing is archived."""
        return self._update(conversation=_new_conversation(), error=None, archive_error=None)
