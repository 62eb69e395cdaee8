from .health import HealthResponse
from .threads import (
    CreateThreadRequest,
    MessageResponse,
    ProviderResponse,
    RebindRequest,
    SendMessageRequest,
    SendMessageResponse,
    ThreadResponse,
)

__all__ = [
    "CreateThreadRequest",
    "HealthResponse",
    "MessageResponse",
    "ProviderResponse",
    "RebindRequest",
    "SendMessageRequest",
    "SendMessageResponse",
    "ThreadResponse",
]
