"""Streaming chat endpoint."""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING

from django.http import JsonResponse, StreamingHttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.api.serializers import ChatRequestSerializer
from core.config import get_settings
from core.logging import bind_context, clear_context, get_logger
from services.catalog.factory import AdapterNotFoundError
from services.chat.factory import create_chat_service
from services.chat.session import ConversationSession, ToolResultsPendingError
from services.chat.stream import STREAM_HEADER, STREAM_VERSION, encode_sse
from services.chat.types import MessageFormatError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from django.http import HttpRequest

    from services.chat.service import ChatService

logger = get_logger(__name__)


def get_chat_service() -> ChatService:
    """Build the chat service for one request."""
    return create_chat_service(get_settings())


@csrf_exempt
@require_POST
async def chat_stream(request: HttpRequest) -> StreamingHttpResponse | JsonResponse:
    """
    Run one assistant turn and stream it as server-sent events.

    The body carries the whole conversation; nothing is stored server-side.
    """
    try:
        payload = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Request body must be JSON"}, status=400)

    serializer = ChatRequestSerializer(data=payload)
    if not serializer.is_valid():
        return JsonResponse({"error": "Invalid chat request", "details": serializer.errors}, status=400)

    try:
        session = ConversationSession.from_dicts(serializer.validated_data["messages"])
        session.ensure_ready_for_turn()
    except MessageFormatError as e:
        return JsonResponse({"error": str(e)}, status=400)
    except ToolResultsPendingError as e:
        return JsonResponse(
            {"error": "Tool results pending", "toolCallIds": e.tool_call_ids},
            status=409,
        )

    try:
        service = get_chat_service()
    except (ValueError, AdapterNotFoundError) as e:
        logger.error("Chat service unavailable", error=str(e))
        return JsonResponse({"error": "Chat is not configured"}, status=503)

    chat_id = serializer.validated_data.get("id") or uuid.uuid4().hex

    async def events() -> AsyncIterator[bytes]:
        bind_context(chat_id=chat_id)
        try:
            async for chunk in encode_sse(service.stream(session)):
                yield chunk
        finally:
            await service.close()
            clear_context()

    response = StreamingHttpResponse(events(), content_type="text/event-stream")
    response["Cache-Control"] = "no-cache"
    response["X-Accel-Buffering"] = "no"
    response[STREAM_HEADER] = STREAM_VERSION
    return response
