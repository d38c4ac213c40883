"""Conversation orchestration for Beacon."""

from .orchestrator import NEW_CHAT_TITLE, ChatState, ConversationOrchestrator

__all__ = ["ChatState", "ConversationOrchestrator", "NEW_CHAT_TITLE"]
