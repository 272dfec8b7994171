"""Graph configuration for the conversation state machine. Construction lives in graph.build."""

from nomad.conversation.graph.config import ConversationConfig, DEFAULT_CONFIG, get_config

__all__ = ["ConversationConfig", "DEFAULT_CONFIG", "get_config"]
