"""Chat orchestration: bounded tool-calling rounds streamed as UI events."""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any, Protocol

from core.logging import get_logger
from services.chat import stream as events
from services.gemini.prompts import ASSISTANT_SYSTEM_PROMPT
from services.gemini.types import FunctionCallRequest, GeminiError, TextDelta
from services.tools.base import ToolExecutionError, ToolInputError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from pydantic import BaseModel

    from services.chat.session import ConversationSession
    from services.chat.stream import StreamEvent
    from services.chat.types import Message
    from services.gemini.types import ModelChunk, ToolDeclaration
    from services.tools.base import ToolRegistry, ToolSpec

logger = get_logger(__name__)

DEFAULT_MAX_STEPS = 5
MODEL_ERROR_MESSAGE = "Sorry, I couldn't generate a response right now. Please try again."


class Closeable(Protocol):
    """A resource released at the end of a request."""

    async def close(self) -> None: ...


class ReasoningModel(Protocol):
    """A model that streams one round of text and function calls."""

    def stream_step(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDeclaration],
        system_instruction: str,
    ) -> AsyncIterator[ModelChunk]:
        """Stream one reasoning round."""
        ...


class ChatService:
    """
    Runs one chat turn as a sequence of reasoning rounds.

    Each round streams model text, then validates the requested tool calls
    and runs the automatic ones concurrently. The turn stops when a round
    requests no tools, when a manual tool awaits the client, or after
    ``max_steps`` rounds.
    """

    def __init__(
        self,
        model: ReasoningModel,
        registry: ToolRegistry,
        max_steps: int = DEFAULT_MAX_STEPS,
        system_prompt: str = ASSISTANT_SYSTEM_PROMPT,
        resources: Sequence[Closeable] = (),
    ) -> None:
        """
        Initialize chat service.

        Args:
            model: Reasoning model to stream rounds from.
            registry: Tools offered to the model.
            max_steps: Upper bound on rounds per turn.
            system_prompt: System instruction for every round.
            resources: Released by ``close()``, e.g. catalog HTTP clients.

        Raises:
            ValueError: If max_steps is below 1.
        """
        if max_steps < 1:
            msg = "max_steps must be at least 1"
            raise ValueError(msg)
        self._model = model
        self._registry = registry
        self._max_steps = max_steps
        self._system_prompt = system_prompt
        self._resources = tuple(resources)

    async def close(self) -> None:
        """Release resources held by the tools."""
        for resource in self._resources:
            await resource.close()

    async def stream(self, session: ConversationSession) -> AsyncIterator[StreamEvent]:
        """
        Run one turn, yielding UI stream events.

        Every event is applied to the session before it is yielded, so once
        the stream ends the session holds the finished assistant message.

        Raises:
            ToolResultsPendingError: If the last assistant message still
                has unresolved tool calls. Raised before any event.
        """
        session.ensure_ready_for_turn()

        last = session.last_message
        if session.last_assistant_message_is_complete_with_tool_calls() and last is not None:
            message_id = last.id
        else:
            message_id = uuid.uuid4().hex

        yield session.apply(events.start(message_id))

        declarations = self._registry.declarations()
        rounds = 0
        try:
            while rounds < self._max_steps:
                rounds += 1
                yield session.apply(events.start_step())

                calls: list[FunctionCallRequest] = []
                async for event in self._stream_model(session, declarations, calls):
                    yield event

                if not calls:
                    yield session.apply(events.finish_step())
                    break

                async for event in self._run_tools(session, calls):
                    yield event
                # Manual tools stay unresolved until the client answers
                paused = bool(session.pending_tool_calls())
                yield session.apply(events.finish_step())
                if paused:
                    logger.info("Turn paused for client tool output", message_id=message_id)
                    break
        except GeminiError as e:
            logger.error("Chat turn failed", message_id=message_id, error=e.message, details=e.details)
            yield session.apply(events.error(MODEL_ERROR_MESSAGE))

        logger.info("Chat turn finished", message_id=message_id, rounds=rounds)
        yield session.apply(events.finish())

    async def _stream_model(
        self,
        session: ConversationSession,
        declarations: list[ToolDeclaration],
        calls: list[FunctionCallRequest],
    ) -> AsyncIterator[StreamEvent]:
        """Stream one model round, collecting function calls into ``calls``."""
        text_id: str | None = None
        try:
            async for chunk in self._model.stream_step(
                session.messages, declarations, self._system_prompt
            ):
                if isinstance(chunk, TextDelta):
                    if text_id is None:
                        text_id = uuid.uuid4().hex
                        yield session.apply(events.text_start(text_id))
                    yield session.apply(events.text_delta(text_id, chunk.text))
                elif isinstance(chunk, FunctionCallRequest):
                    calls.append(chunk)
        except GeminiError:
            if text_id is not None:
                yield session.apply(events.text_end(text_id))
            raise
        if text_id is not None:
            yield session.apply(events.text_end(text_id))

    async def _run_tools(
        self,
        session: ConversationSession,
        calls: list[FunctionCallRequest],
    ) -> AsyncIterator[StreamEvent]:
        """Validate tool calls, then execute the automatic ones concurrently."""
        runnable: list[tuple[str, ToolSpec, BaseModel]] = []
        for call in calls:
            yield session.apply(events.tool_input_start(call.id, call.name))
            try:
                spec = self._registry.get(call.name)
                parsed = spec.parse_input(call.args)
            except ToolInputError as e:
                logger.warning("Invalid tool call", tool_name=call.name, error=e.message)
                yield session.apply(events.tool_input_error(call.id, call.name, call.args, e.message))
                continue

            yield session.apply(
                events.tool_input_available(call.id, call.name, parsed.model_dump(by_alias=True))
            )
            if not spec.is_manual:
                runnable.append((call.id, spec, parsed))

        if not runnable:
            return

        queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        tasks = [
            asyncio.create_task(self._execute(tool_call_id, spec, parsed, queue))
            for tool_call_id, spec, parsed in runnable
        ]
        gathered = asyncio.gather(*tasks)
        try:
            remaining = len(tasks)
            while remaining:
                event = await queue.get()
                if event is None:
                    remaining -= 1
                    continue
                yield session.apply(event)
            await gathered
        finally:
            # Stream consumer went away before the tools finished
            if not gathered.done():
                gathered.cancel()

    async def _execute(
        self,
        tool_call_id: str,
        spec: ToolSpec,
        tool_input: BaseModel,
        queue: asyncio.Queue[StreamEvent | None],
    ) -> None:
        """Run one tool, pushing its events to the queue in order."""
        try:
            if spec.execute is None:
                raise ToolExecutionError(f"Tool {spec.name} cannot run on the server")
            output: Any = None
            produced = False
            async for output in spec.execute(tool_input):
                produced = True
                await queue.put(events.tool_output_available(tool_call_id, output, preliminary=True))
            if not produced:
                raise ToolExecutionError(f"Tool {spec.name} produced no output")
            await queue.put(events.tool_output_available(tool_call_id, output))
        except ToolExecutionError as e:
            await queue.put(events.tool_output_error(tool_call_id, str(e)))
        except Exception as e:
            logger.exception("Tool execution failed", tool_name=spec.name, tool_call_id=tool_call_id)
            await queue.put(events.tool_output_error(tool_call_id, f"Error running {spec.name}: {e}"))
        finally:
            await queue.put(None)
