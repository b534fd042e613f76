# Generator package

# Makes generate/ importable and exposes key interfaces.

from .cancel import CancellationToken, GenerationCancelled
from .errors import ErrorKind, ProviderError, classify_status, user_friendly_error
from .retry import RetryPolicy
from .stream import StreamAdapter, StreamClient
from .types import (
    AgentResult,
    Attachment,
    Backend,
    GenerationRequest,
    Message,
    ModelParams,
    OutputMessage,
    ProviderSession,
    TextFragment,
)
from .clients.echo_dev_client import EchoStreamClient

__all__ = [
    "AgentResult", "Attachment", "Backend", "CancellationToken", "EchoStreamClient", "ErrorKind",
    "GenerationCancelled", "GenerationRequest", "Message", "ModelParams", "OutputMessage",
    "ProviderError", "ProviderSession", "RetryPolicy", "StreamAdapter", "StreamClient",
    "TextFragment", "classify_status", "user_friendly_error",
]
