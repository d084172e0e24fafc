"""LLM client built on litellm.

Wraps the three call shapes the agent needs:
- a non-streaming tool-use call for the search phase
- a streaming text call for the synthesis phase
- a plain system + user call for citation analysis

Every litellm failure is re-raised as LLMError so callers handle a single type.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

from agents.errors import LLMError
from utils.config import Config

logger = logging.getLogger(__name__)

# finish_reason values that mean the model ended its turn on its own
NATURAL_STOP_REASONS = frozenset({"stop", "end_turn"})


@dataclass
class ToolCall:
    """One tool invocation requested by the model."""

    id: str
    name: str
    arguments: Dict[str, Any]
    raw_arguments: str = "{}"

    def to_message(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.raw_arguments},
        }


@dataclass
class LLMTurn:
    """The model's side of one search-phase exchange."""

    text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    finish_reason: Optional[str] = None

    @property
    def ended_naturally(self) -> bool:
        return self.finish_reason in NATURAL_STOP_REASONS

    def to_message(self) -> Dict[str, Any]:
        """Render as an assistant message for the transcript."""
        message: Dict[str, Any] = {"role": "assistant", "content": self.text or None}
        if self.tool_calls:
            message["tool_calls"] = [call.to_message() for call in self.tool_calls]
        return message


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    """Decode tool-call arguments; malformed JSON yields an empty dict."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Model sent malformed tool arguments: {raw[:200]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _parse_turn(response: Any) -> LLMTurn:
    choice = response.choices[0]
    message = choice.message

    tool_calls = []
    for call in getattr(message, "tool_calls", None) or []:
        raw = call.function.arguments or "{}"
        tool_calls.append(ToolCall(
            id=call.id,
            name=call.function.name,
            arguments=_parse_arguments(raw),
            raw_arguments=raw,
        ))

    return LLMTurn(
        text=message.content or "",
        tool_calls=tool_calls,
        finish_reason=choice.finish_reason,
    )


async def _close_stream(response: Any) -> None:
    aclose = getattr(response, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.debug(f"Closing provider stream failed: {e}")


class LLMClient:
    """Thin async wrapper around ``litellm.acompletion``."""

    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None):
        self.model = model or Config.LITELLM_MODEL
        self.temperature = temperature

    def _kwargs(self, max_tokens: int) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"model": self.model, "max_tokens": max_tokens}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        return kwargs

    async def complete_with_tools(
        self,
        system_prompt: str,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        max_tokens: Optional[int] = None,
    ) -> LLMTurn:
        """Run one tool-use turn over the full transcript.

        Args:
            system_prompt: Instructions for the model
            messages: Transcript so far (user, assistant and tool messages)
            tools: Tool catalog in function-calling format
            max_tokens: Generation cap (default: Config.SEARCH_MAX_TOKENS)

        Returns:
            The parsed turn (text, requested tool calls, finish reason)
        """
        from litellm import acompletion

        try:
            response = await acompletion(
                messages=[{"role": "system", "content": system_prompt}, *messages],
                tools=tools,
                **self._kwargs(max_tokens or Config.SEARCH_MAX_TOKENS),
            )
        except Exception as e:
            raise LLMError(
                f"LLM call failed: {e}",
                cause=e,
                context={"model": self.model, "messages": len(messages)},
            )

        turn = _parse_turn(response)
        logger.debug(
            f"LLM turn: finish_reason={turn.finish_reason} "
            f"tool_calls={[c.name for c in turn.tool_calls]} text_len={len(turn.text)}"
        )
        return turn

    async def stream_text(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """Stream a generation as text fragments, in generation order.

        Closing the iterator also closes the provider stream, which aborts
        the generation.
        """
        from litellm import acompletion

        response = None
        try:
            response = await acompletion(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                stream=True,
                **self._kwargs(max_tokens or Config.REVIEW_MAX_TOKENS),
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    yield text
        except Exception as e:
            raise LLMError(
                f"LLM stream failed: {e}",
                cause=e,
                context={"model": self.model},
            )
        finally:
            await _close_stream(response)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 2000,
    ) -> str:
        """Call the LLM with system and user prompts and return its text."""
        from litellm import acompletion

        try:
            response = await acompletion(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **self._kwargs(max_tokens),
            )
        except Exception as e:
            raise LLMError(
                f"LLM call failed: {e}",
                cause=e,
                context={"model": self.model},
            )

        content = response.choices[0].message.content
        if content is None:
            raise LLMError("LLM returned empty content", context={"model": self.model})
        return content
