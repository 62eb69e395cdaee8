"""
Shared test fixtures and configuration.

Environment strategy:
- All tests use .env.test (no API keys, no network)
- Backends are scripted pydantic-ai FunctionModels registered as the
  "alpha" and "beta" providers, so every turn is deterministic
"""

from pathlib import Path

import logfire
import pytest
from dotenv import load_dotenv

ENV_FILE = Path(__file__).parent.parent / ".env.test"

load_dotenv(ENV_FILE, override=True)
logfire.configure(send_to_logfire=False, console=False)

from threadkit.domain.provider import ProviderCatalog, ProviderFactory  # noqa: E402
from threadkit.domain.thread_registry import ThreadRegistry  # noqa: E402
from threadkit.domain.tools import ToolDefinition, ToolParameter, ToolRegistry, ToolSchema  # noqa: E402

from .scripted import ScriptedBackend  # noqa: E402


@pytest.fixture
def backend() -> ScriptedBackend:
    """Scripted backend serving the "alpha" provider."""
    return ScriptedBackend()


@pytest.fixture
def beta_backend() -> ScriptedBackend:
    """Second scripted backend serving the "beta" provider."""
    return ScriptedBackend()


@pytest.fixture
def catalog(backend: ScriptedBackend, beta_backend: ScriptedBackend) -> ProviderCatalog:
    """Built-in providers plus the scripted alpha and beta backends."""
    return ProviderCatalog.default().with_variants(backend.variant("alpha"), beta_backend.variant("beta"))


@pytest.fixture
def factory(catalog: ProviderCatalog) -> ProviderFactory:
    return ProviderFactory(catalog, timeout=5.0)


@pytest.fixture
def echo_tool() -> ToolDefinition:
    """Tool whose capability returns its "text" argument."""
    return ToolDefinition(
        name="echo",
        description="Repeat the given text",
        parameters=ToolSchema(parameters=(ToolParameter(name="text", description="Text to repeat"),)),
        capability=lambda args: args["text"],
    )


@pytest.fixture
def tools(echo_tool: ToolDefinition) -> ToolRegistry:
    return ToolRegistry([echo_tool], timeout=2.0)


@pytest.fixture
def registry(factory: ProviderFactory, tools: ToolRegistry) -> ThreadRegistry:
    return ThreadRegistry(factory, tools, system_prompt="You are a test assistant.", max_tool_rounds=3)
