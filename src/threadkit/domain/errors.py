"""Domain error taxonomy.

Configuration and lookup errors are the caller's fault and surface before any
history is touched. Backend failures are potentially transient and leave the
thread usable for a retry. Tool failures never appear here: the registry turns
them into ToolOutcome values.
"""

from __future__ import annotations


class ThreadkitError(Exception):
    """Base class for every error raised by the engine."""


class UnsupportedProviderError(ThreadkitError, ValueError):
    """Provider identifier matches no known backend."""

    def __init__(self, provider: str, known: tuple[str, ...] = ()):
        self.provider = provider
        self.known = known
        hint = f" (known: {', '.join(known)})" if known else ""
        super().__init__(f"Unsupported provider '{provider}'{hint}")


class ThreadNotFoundError(ThreadkitError, KeyError):
    """No live thread has the requested id."""

    def __init__(self, thread_id: object):
        self.thread_id = thread_id
        super().__init__(f"Thread '{thread_id}' not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class ProviderRequestError(ThreadkitError, RuntimeError):
    """Backend request failed: auth, rate limit, network, timeout or malformed response."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"Provider '{provider}' request failed: {detail}")


class ToolChainLimitExceeded(ThreadkitError, RuntimeError):
    """Backend kept requesting tools past the per-turn round limit."""

    def __init__(self, thread_id: object, max_rounds: int):
        self.thread_id = thread_id
        self.max_rounds = max_rounds
        super().__init__(f"Thread '{thread_id}' exceeded {max_rounds} tool rounds in a single turn")


__all__ = [
    "ProviderRequestError",
    "ThreadNotFoundError",
    "ThreadkitError",
    "ToolChainLimitExceeded",
    "UnsupportedProviderError",
]
