"""Provider Layer - Catalog, Factory and Adapter for Model Backends.

Every backend is reached through the same polymorphic capability:
``ModelProviderAdapter.send(history) -> Message``. Which backend answers is
decided by a closed catalog mapping provider identifiers to variants; there
is no reflection or open-ended lookup.

Architecture:
    ProviderCatalog: Closed mapping id/alias → ProviderVariant
    ├─ ProviderVariant: Backend family, default model, request defaults
    ProviderFactory: (provider id, ProviderOptions) → ModelProviderAdapter
    ModelProviderAdapter: One configured backend; send() = one model request
    ProviderBinding: (provider, model, temperature) + adapter, held by a Thread

Requests go through pydantic-ai's direct model API: a single request/response
exchange with no agent loop, so tool resolution stays in the conversation
engine where history and rollback are managed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

import logfire
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, RootModel, model_validator
from pydantic_ai.direct import model_request
from pydantic_ai.models import Model, ModelRequestParameters, infer_model
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import ToolDefinition as ModelToolDefinition

from .domain_type import ModelBackend
from .domain_value import Message
from .errors import ProviderRequestError, UnsupportedProviderError
from .message_codec import from_model_response, to_model_messages

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT_SECONDS = 60.0


class ProviderOptions(BaseModel):
    """Caller-supplied configuration for a binding.

    Attributes:
        model: Backend-specific model identifier (None = provider default)
        temperature: Sampling temperature
    """

    model: str | None = None
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)

    model_config = ConfigDict(frozen=True)


class ProviderVariant(BaseModel):
    """One Backend Entry in the Provider Catalog.

    Attributes:
        id: Canonical provider identifier (e.g., "anthropic")
        label: Human-readable name for listings
        backend: pydantic-ai backend family used to build the client
        default_model: Model used when options don't name one
        aliases: Alternative identifiers that resolve to this variant
        max_tokens: Per-request output cap, if the backend needs one
        builder: Optional client constructor overriding backend inference;
            lets embedding code (and tests) plug in any pydantic-ai Model
    """

    id: str
    label: str
    default_model: str
    backend: ModelBackend | None = None
    aliases: tuple[str, ...] = ()
    max_tokens: int | None = None
    builder: Callable[[str], Model] | None = Field(default=None, exclude=True, repr=False)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def require_backend_or_builder(self) -> ProviderVariant:
        if self.backend is None and self.builder is None:
            raise ValueError(f"Provider '{self.id}' needs a backend or a builder")
        return self

    @property
    def identifiers(self) -> frozenset[str]:
        return frozenset(name.lower() for name in (self.id, *self.aliases))

    def build_model(self, model_name: str) -> Model:
        if self.builder is not None:
            return self.builder(model_name)
        if self.backend is None:
            raise ValueError(f"Provider '{self.id}' has no backend to build a client from")
        return infer_model(f"{self.backend.value}:{model_name}")


BUILTIN_VARIANTS: tuple[ProviderVariant, ...] = (
    ProviderVariant(
        id="openai",
        label="OpenAI",
        backend=ModelBackend.OPENAI,
        default_model="gpt-4o-mini",
        aliases=("gpt",),
    ),
    ProviderVariant(
        id="anthropic",
        label="Claude (Anthropic)",
        backend=ModelBackend.ANTHROPIC,
        default_model="claude-3-sonnet-20240229",
        aliases=("claude",),
        max_tokens=1024,
    ),
    ProviderVariant(
        id="deepseek",
        label="DeepSeek",
        backend=ModelBackend.DEEPSEEK,
        default_model="deepseek-chat",
    ),
    ProviderVariant(
        id="groq",
        label="Groq (Qwen)",
        backend=ModelBackend.GROQ,
        default_model="qwen-2.5-32b",
        aliases=("qwen",),
    ),
    ProviderVariant(
        id="llama",
        label="Llama (Groq)",
        backend=ModelBackend.GROQ,
        default_model="llama-3.3-70b-specdec",
    ),
)


class ProviderCatalog(RootModel[dict[str, ProviderVariant]]):
    """Closed mapping from provider id to variant - wraps dict for validation."""

    root: dict[str, ProviderVariant]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_duplicate_identifiers(self) -> ProviderCatalog:
        """Every id and alias must resolve to exactly one variant."""
        all_ids = [name for variant in self.root.values() for name in variant.identifiers]
        duplicates = sorted({name for name in all_ids if all_ids.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate provider identifiers: {duplicates}")
        return self

    @classmethod
    def from_variants(cls, *variants: ProviderVariant) -> ProviderCatalog:
        return cls({variant.id: variant for variant in variants})

    @classmethod
    def default(cls) -> ProviderCatalog:
        """Catalog of the built-in backends."""
        return cls.from_variants(*BUILTIN_VARIANTS)

    def with_variants(self, *extra: ProviderVariant) -> ProviderCatalog:
        """New catalog with extra variants added (same id replaces)."""
        return self.from_variants(*{**self.root, **{v.id: v for v in extra}}.values())

    def ids(self) -> tuple[str, ...]:
        return tuple(self.root)

    def variants(self) -> tuple[ProviderVariant, ...]:
        return tuple(self.root.values())

    def variant(self, identifier: str) -> ProviderVariant:
        """Find a variant by id or alias (case-insensitive).

        Raises:
            UnsupportedProviderError: Identifier matches no variant
        """
        key = identifier.strip().lower()
        for variant in self.root.values():
            if key in variant.identifiers:
                return variant
        raise UnsupportedProviderError(identifier, self.ids())


class ModelProviderAdapter(BaseModel):
    """
    Uniform request/response interface over one configured backend.

    The pydantic-ai client is built lazily on first send, so missing
    credentials surface as a ProviderRequestError on that send rather than
    when a thread is created.
    """

    variant: ProviderVariant
    model_name: str
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS
    _client_cache: Model | None = PrivateAttr(default=None)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def provider(self) -> str:
        return self.variant.id

    @property
    def client(self) -> Model:
        """Lazy-initialized backend client (cached)."""
        if self._client_cache is None:
            client = self.variant.build_model(self.model_name)
            object.__setattr__(self, "_client_cache", client)
            return client
        return self._client_cache

    @property
    def settings(self) -> ModelSettings:
        settings = ModelSettings(temperature=self.temperature)
        if self.variant.max_tokens is not None:
            settings["max_tokens"] = self.variant.max_tokens
        return settings

    async def send(
        self,
        history: Sequence[Message],
        tools: Sequence[ModelToolDefinition] = (),
    ) -> Message:
        """Send the Full History and Return One Assistant Message.

        Args:
            history: Ordered thread history (system message first)
            tools: Tool definitions advertised to the backend

        Returns:
            New assistant Message, possibly carrying a tool call request

        Raises:
            ProviderRequestError: Auth, rate limit, network, timeout or a
                response that cannot be turned into a Message
        """
        parameters = ModelRequestParameters(function_tools=list(tools), allow_text_output=True)
        try:
            async with asyncio.timeout(self.timeout):
                response = await model_request(
                    self.client,
                    to_model_messages(history),
                    model_settings=self.settings,
                    model_request_parameters=parameters,
                )
            return from_model_response(response)
        except TimeoutError as exc:
            raise ProviderRequestError(self.provider, f"no response within {self.timeout}s") from exc
        except Exception as exc:
            logfire.warn(
                "Provider {provider} request failed: {error}",
                provider=self.provider,
                model=self.model_name,
                error=str(exc),
            )
            raise ProviderRequestError(self.provider, str(exc) or type(exc).__name__) from exc


class ProviderBinding(BaseModel):
    """The (provider, model, temperature) triple currently serving a thread."""

    provider: str
    model: str
    temperature: float
    adapter: ModelProviderAdapter = Field(exclude=True, repr=False)

    model_config = ConfigDict(frozen=True)


class ProviderFactory:
    """
    Maps a provider identifier + options to a configured adapter.

    Responsibilities:
    - Own the ProviderCatalog (closed set of backends)
    - Apply per-provider defaults (model) and options (temperature)
    - Stamp every adapter with the request timeout
    """

    def __init__(self, catalog: ProviderCatalog | None = None, *, timeout: float | None = DEFAULT_TIMEOUT_SECONDS):
        self.catalog = catalog if catalog is not None else ProviderCatalog.default()
        self.timeout = timeout

    def create(self, provider_id: str, options: ProviderOptions | None = None) -> ModelProviderAdapter:
        """
        Build an adapter for a provider.

        Raises:
            UnsupportedProviderError: provider_id matches no known backend
        """
        options = options or ProviderOptions()
        variant = self.catalog.variant(provider_id)
        return ModelProviderAdapter(
            variant=variant,
            model_name=options.model or variant.default_model,
            temperature=options.temperature,
            timeout=self.timeout,
        )

    def bind(self, provider_id: str, options: ProviderOptions | None = None) -> ProviderBinding:
        adapter = self.create(provider_id, options)
        return ProviderBinding(
            provider=adapter.provider,
            model=adapter.model_name,
            temperature=adapter.temperature,
            adapter=adapter,
        )


__all__ = [
    "BUILTIN_VARIANTS",
    "DEFAULT_TEMPERATURE",
    "ModelProviderAdapter",
    "ProviderBinding",
    "ProviderCatalog",
    "ProviderFactory",
    "ProviderOptions",
    "ProviderVariant",
]
