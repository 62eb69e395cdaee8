"""Thread service construction - settings in, ready ThreadRegistry out."""

from __future__ import annotations

from collections.abc import Iterable

from ..config import Settings
from ..domain.builtin_tools import BUILTIN_TOOLS
from ..domain.provider import ProviderCatalog, ProviderFactory, ProviderOptions
from ..domain.thread_registry import ThreadRegistry
from ..domain.tools import ToolDefinition, ToolRegistry


def create_tool_registry(settings: Settings, extra_tools: Iterable[ToolDefinition] = ()) -> ToolRegistry:
    """
    Build the tool registry shared by every thread.

    Built-ins go first so that extra tools with the same name replace them.
    """
    tools = ToolRegistry(timeout=settings.tool_timeout_seconds)
    if settings.enable_builtin_tools:
        for tool in BUILTIN_TOOLS:
            tools.register(tool)
    for tool in extra_tools:
        tools.register(tool)
    return tools


def create_thread_registry(
    settings: Settings,
    *,
    catalog: ProviderCatalog | None = None,
    extra_tools: Iterable[ToolDefinition] = (),
) -> ThreadRegistry:
    """
    Factory function for creating the ThreadRegistry.

    Service owns its own construction logic - deps.py just calls this.

    Args:
        settings: Application settings (timeouts, limits, prompt)
        catalog: Provider catalog (None = built-in backends)
        extra_tools: Application tools registered after the built-ins

    Returns:
        Configured, empty ThreadRegistry ready for use
    """
    factory = ProviderFactory(catalog, timeout=settings.provider_timeout_seconds)
    return ThreadRegistry(
        factory,
        create_tool_registry(settings, extra_tools),
        system_prompt=settings.system_prompt,
        max_tool_rounds=settings.max_tool_rounds,
    )


def default_options(settings: Settings, model: str | None, temperature: float | None) -> ProviderOptions:
    """Fill unset request options from settings."""
    return ProviderOptions(
        model=model,
        temperature=settings.default_temperature if temperature is None else temperature,
    )


__all__ = ["create_thread_registry", "create_tool_registry", "default_options"]
