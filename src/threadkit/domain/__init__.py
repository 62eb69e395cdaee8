"""Domain Layer - Threads, Tools and Providers.

This module provides the conversation engine: provider-agnostic threads whose
history grows turn by turn, a tool registry the model can call into, and a
closed catalog of model backends reached through pydantic-ai.

Key Components:
    - ThreadRegistry: Owned store of live threads (create/get/send/rebind/list)
    - ConversationEngine: One thread's bounded tool-resolution loop with rollback
    - Thread: Immutable snapshot (id, history, provider binding)
    - ToolRegistry: Named capabilities, schema validation, failure absorption
    - ProviderFactory: Provider id + options → ModelProviderAdapter

Design Principles:
    - Immutable snapshots: history changes by functional append
    - Explicit ownership: no global registries, dependencies passed in
    - Failures scoped to one thread and one turn
"""

from .builtin_tools import BUILTIN_TOOLS
from .conversation import DEFAULT_MAX_TOOL_ROUNDS, DEFAULT_SYSTEM_PROMPT, ConversationEngine, Thread, TurnResult
from .domain_type import MessageRole, ModelBackend, ParameterType, ToolOutcomeStatus, TurnState
from .domain_value import Message, MessageId, ThreadId, ThreadSummary, ToolCallRequest, ToolOutcome
from .errors import (
    ProviderRequestError,
    ThreadkitError,
    ThreadNotFoundError,
    ToolChainLimitExceeded,
    UnsupportedProviderError,
)
from .provider import (
    ModelProviderAdapter,
    ProviderBinding,
    ProviderCatalog,
    ProviderFactory,
    ProviderOptions,
    ProviderVariant,
)
from .thread_registry import ThreadRegistry
from .tools import ToolDefinition, ToolParameter, ToolRegistry, ToolSchema

__all__ = [
    "BUILTIN_TOOLS",
    "DEFAULT_MAX_TOOL_ROUNDS",
    "DEFAULT_SYSTEM_PROMPT",
    "ConversationEngine",
    "Message",
    "MessageId",
    "MessageRole",
    "ModelBackend",
    "ModelProviderAdapter",
    "ParameterType",
    "ProviderBinding",
    "ProviderCatalog",
    "ProviderFactory",
    "ProviderOptions",
    "ProviderRequestError",
    "ProviderVariant",
    "Thread",
    "ThreadId",
    "ThreadNotFoundError",
    "ThreadRegistry",
    "ThreadSummary",
    "ThreadkitError",
    "ToolCallRequest",
    "ToolChainLimitExceeded",
    "ToolDefinition",
    "ToolOutcome",
    "ToolOutcomeStatus",
    "ToolParameter",
    "ToolRegistry",
    "ToolSchema",
    "TurnResult",
    "TurnState",
    "UnsupportedProviderError",
]
