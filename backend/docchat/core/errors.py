"""
Error kinds raised by the chatbot core.

Startup errors (ConfigurationError) are fatal: entry points exit with code 1.
Everything else is per-request: it aborts the current execution, leaves the
checkpoint at the last completed step, and is reported generically by the
HTTP / CLI boundary.
"""


class ChatbotError(Exception):
    """Base class for all docchat errors."""


class ConfigurationError(ChatbotError):
    """Missing credential, missing vector index or unusable backend settings."""


class RetrievalError(ChatbotError):
    """The vector index could not be queried."""


class ModelInvocationError(ChatbotError):
    """The chat model call failed or returned something other than an AI turn."""


class RoutingInvariantError(ChatbotError):
    """The latest turn has a shape the router cannot dispatch on."""


class TurnOrderError(ChatbotError):
    """A state update would reorder, drop or mis-pair turns."""


class ValidationError(ChatbotError):
    """The question was rejected before any graph execution."""
