# localcoder/llm_interaction.py
import json
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx
from litellm import completion
from rich.console import Console
from rich.json import JSON as RichJSON
from rich.text import Text

from localcoder.data_models import Turn
from localcoder.exceptions import ModelTransportError
from localcoder.logger import get_logger

logger = get_logger(__name__)

THINK_BLOCK_RE = re.compile(r"<think>(.*?)</think>", re.DOTALL)
UNCLOSED_THINK_RE = re.compile(r"^\s*<think>(.*)$", re.DOTALL)


class ModelClient(Protocol):
    def complete(self, turns: Sequence[Turn], model: str, temperature: float) -> str:
        ...


def strip_think_blocks(text: str) -> Tuple[str, str]:
    """Split reasoning-model output into (visible text, reasoning)."""
    reasoning = [m.strip() for m in THINK_BLOCK_RE.findall(text)]
    visible = THINK_BLOCK_RE.sub("", text)
    unclosed = UNCLOSED_THINK_RE.match(visible)
    if unclosed and "</think>" not in visible:
        # Generation stopped mid-thought
        reasoning.append(unclosed.group(1).strip())
        visible = ""
    return visible.strip(), "\n\n".join(r for r in reasoning if r)


class LiteLLMModelClient:
    """ModelClient that calls a local (or any LiteLLM-supported) model server, non-streaming."""

    def __init__(self, api_base: Optional[str], max_tokens: int, console, debug: bool = False):
        self.api_base = api_base
        self.max_tokens = max_tokens
        self.console = console
        self.debug = debug

    def complete(self, turns: Sequence[Turn], model: str, temperature: float) -> str:
        messages = [t.to_message() for t in turns]
        completion_params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
            "stream": False,
        }
        if self.api_base:
            completion_params["api_base"] = self.api_base
        # Add dummy API key for LM Studio models.
        if model.startswith("lm_studio/"):
            completion_params["api_key"] = "dummy"

        if self.debug:
            debug_params = {k: v for k, v in completion_params.items() if k != "messages"}
            debug_params["messages"] = f"{len(messages)} message(s), last role: {messages[-1]['role'] if messages else 'none'}"
            Console(stderr=True).print(f"[dim bold red]LLM DEBUG: Request Params ({model}):[/dim bold red]")
            Console(stderr=True).print(RichJSON(json.dumps(debug_params, indent=2, default=str)))

        try:
            with self.console.status(f"[bold blue]💭 Waiting for {model}...[/bold blue]", spinner="dots"):
                response = completion(**completion_params)
        except Exception as e:  # LiteLLM maps provider failures onto many exception types
            logger.debug("completion() failed", exc_info=True)
            raise ModelTransportError(f"LLM API error: {e}", model=model) from e

        try:
            message = response.choices[0].message
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise ModelTransportError(f"LLM API error: malformed response from {model}: {e}", model=model) from e

        content = message.content or ""
        visible, reasoning = strip_think_blocks(content)
        reasoning = reasoning or (getattr(message, "reasoning_content", None) or "")
        if self.debug and reasoning:
            Console(stderr=True).print(Text(f"💭 Reasoning:\n{reasoning}", style="dim"))
        logger.debug("Model %s returned %d characters (%d reasoning)", model, len(visible), len(reasoning))
        return visible


def list_ollama_models(api_base: str, timeout: float = 5.0) -> List[str]:
    """Model names served by an Ollama server (GET /api/tags). Raises httpx.HTTPError on failure."""
    response = httpx.get(f"{api_base.rstrip('/')}/api/tags", timeout=timeout)
    response.raise_for_status()
    return sorted(m.get("name", "") for m in response.json().get("models", []) if m.get("name"))
