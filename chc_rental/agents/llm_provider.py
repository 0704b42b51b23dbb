"""Abstract LLM provider with OpenAI and Anthropic function-calling adapters."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from chc_rental.config import get_settings
from chc_rental.services.errors import ModelTransportError


@dataclass
class FunctionCall:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelReply:
    """Either a function call or free text; a reply with neither is invalid."""

    function_call: FunctionCall | None = None
    text: str | None = None


class LLMProvider(ABC):
    """Abstract interface for function-calling chat completions."""

    @abstractmethod
    async def call_with_tools(self, system: str, user_text: str, tools: list[dict]) -> ModelReply:
        """Send system instruction + user text + function declarations.

        Raises ModelTransportError on network failure or an unparseable reply.
        """
        ...


def _parse_arguments(raw: str | dict | None) -> dict:
    if isinstance(raw, dict):
        return raw
    try:
        args = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        raise ModelTransportError(f"Malformed function arguments: {e}") from e
    if not isinstance(args, dict):
        raise ModelTransportError("Function arguments are not an object")
    return args


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions with tool calls."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", max_tokens: int = 1024):
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def call_with_tools(self, system: str, user_text: str, tools: list[dict]) -> ModelReply:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user_text},
                ],
                tools=[{"type": "function", "function": t} for t in tools],
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            raise ModelTransportError(str(e)) from e

        if not resp.choices:
            raise ModelTransportError("Response contained no choices")
        message = resp.choices[0].message
        if message.tool_calls:
            call = message.tool_calls[0]
            return ModelReply(function_call=FunctionCall(
                name=call.function.name,
                args=_parse_arguments(call.function.arguments),
            ))
        if message.content:
            return ModelReply(text=message.content)
        raise ModelTransportError("Response had neither a tool call nor text")


class AnthropicProvider(LLMProvider):
    """Anthropic Claude messages with tool use."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", max_tokens: int = 1024):
        from anthropic import AsyncAnthropic
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def call_with_tools(self, system: str, user_text: str, tools: list[dict]) -> ModelReply:
        try:
            resp = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": [{"type": "text", "text": user_text}]}],
                tools=[
                    {"name": t["name"], "description": t["description"], "input_schema": t["parameters"]}
                    for t in tools
                ],
            )
        except Exception as e:
            raise ModelTransportError(str(e)) from e

        texts = []
        for block in resp.content:
            if block.type == "tool_use":
                return ModelReply(function_call=FunctionCall(
                    name=block.name, args=_parse_arguments(block.input),
                ))
            if block.type == "text" and block.text:
                texts.append(block.text)
        if texts:
            return ModelReply(text="\n".join(texts))
        raise ModelTransportError("Response had neither a tool call nor text")


def get_llm_provider() -> LLMProvider:
    """Factory: honours llm.provider, else OpenAI if a key is set, else Anthropic."""
    settings = get_settings()
    cfg = settings.llm
    if cfg.provider == "none":
        raise RuntimeError("LLM assistant disabled (llm.provider = none).")
    if settings.openai_api_key and cfg.provider in ("auto", "openai"):
        return OpenAIProvider(settings.openai_api_key, cfg.openai_model, cfg.max_tokens)
    if settings.anthropic_api_key and cfg.provider in ("auto", "anthropic"):
        return AnthropicProvider(settings.anthropic_api_key, cfg.anthropic_model, cfg.max_tokens)
    raise RuntimeError("No LLM API key configured. Set OPENAI_API_KEY or ANTHROPIC_API_KEY.")
