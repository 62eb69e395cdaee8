"""Thread API Router - thin HTTP layer over the ThreadRegistry."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...config import Settings
from ...domain.domain_value import ThreadId, ThreadSummary
from ...domain.errors import (
    ProviderRequestError,
    ThreadNotFoundError,
    ToolChainLimitExceeded,
    UnsupportedProviderError,
)
from ...domain.thread_registry import ThreadRegistry
from ...service import default_options
from ..contracts import (
    CreateThreadRequest,
    MessageResponse,
    ProviderResponse,
    RebindRequest,
    SendMessageRequest,
    SendMessageResponse,
    ThreadResponse,
)
from ..deps import get_app_settings, get_thread_registry

router = APIRouter(tags=["threads"])

Registry = Annotated[ThreadRegistry, Depends(get_thread_registry)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


@router.get("/providers", response_model=list[ProviderResponse])
async def list_providers(registry: Registry) -> list[ProviderResponse]:
    """List backends a thread can be bound to."""
    return [
        ProviderResponse(id=v.id, label=v.label, default_model=v.default_model, aliases=v.aliases)
        for v in registry.factory.catalog.variants()
    ]


@router.post("/threads", response_model=ThreadResponse)
async def create_thread(request: CreateThreadRequest, registry: Registry, settings: AppSettings) -> ThreadResponse:
    """
    Open a new thread.

    Thin orchestration layer:
    1. Fill unset options from settings
    2. registry.create_thread() (domain owns seeding and greeting)
    3. Map to API contract
    """
    options = default_options(settings, request.model, request.temperature)
    try:
        thread = await registry.create_thread(
            request.provider or settings.default_provider,
            options,
            greet=request.greet,
        )
    except UnsupportedProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (ProviderRequestError, ToolChainLimitExceeded) as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    greeting = thread.history[-1].content if request.greet else None
    return ThreadResponse(
        thread_id=thread.id,
        provider=thread.binding.provider,
        model=thread.binding.model,
        greeting=greeting,
    )


@router.get("/threads", response_model=list[ThreadSummary])
async def list_threads(registry: Registry) -> list[ThreadSummary]:
    """Summaries of all live threads."""
    return registry.list_threads()


@router.get("/threads/{thread_id}", response_model=ThreadSummary)
async def get_thread(thread_id: UUID, registry: Registry) -> ThreadSummary:
    """Get thread metadata by ID."""
    try:
        return registry.list_thread(ThreadId(root=thread_id))
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/threads/{thread_id}/messages", response_model=list[MessageResponse])
async def get_history(thread_id: UUID, registry: Registry) -> list[MessageResponse]:
    """Full ordered history of a thread."""
    try:
        thread = registry.get_thread(ThreadId(root=thread_id))
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [MessageResponse.from_domain(message) for message in thread.history]


@router.post("/threads/{thread_id}/messages", response_model=SendMessageResponse)
async def send_message(thread_id: UUID, request: SendMessageRequest, registry: Registry) -> SendMessageResponse:
    """
    Send a message and get the model's final answer.

    Tool calls requested along the way are resolved inside the turn; they are
    visible in the thread history, not in this response.
    """
    try:
        turn = await registry.run_turn(ThreadId(root=thread_id), request.content)
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (ProviderRequestError, ToolChainLimitExceeded) as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return SendMessageResponse(
        message=MessageResponse.from_domain(turn.message),
        provider=turn.binding.provider,
        model=turn.binding.model,
    )


@router.put("/threads/{thread_id}/provider", response_model=ThreadResponse)
async def rebind_thread(
    thread_id: UUID,
    request: RebindRequest,
    registry: Registry,
    settings: AppSettings,
) -> ThreadResponse:
    """Switch a thread to another provider; history is kept."""
    options = default_options(settings, request.model, request.temperature)
    try:
        thread = await registry.rebind(ThreadId(root=thread_id), request.provider, options)
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UnsupportedProviderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return ThreadResponse(thread_id=thread.id, provider=thread.binding.provider, model=thread.binding.model)


@router.delete("/threads/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_thread(thread_id: UUID, registry: Registry) -> Response:
    """Destroy a thread."""
    try:
        registry.remove_thread(ThreadId(root=thread_id))
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
