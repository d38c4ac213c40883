"""Chat-completion client for Beacon."""

from .client import ChatClient, build_api_messages, build_context_prompt

__all__ = [
    "ChatClient",
    "build_api_messages",
    "build_context_prompt",
]
