# src/chatbridge/core/prompt.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence, Tuple

TOOLS_HEADER = "## Available Tools"


def compose_prompt(system_prompts: Sequence[str], tools: Sequence[str]) -> str:
    """
    Join system prompts with blank lines, then append the tools section when
    any tool descriptions exist. Text is used as-is (no escaping).
    """
    prompt = "\n\n".join(system_prompts)
    if tools:
        prompt += f"\n{TOOLS_HEADER}\n\n"
        prompt += "\n\n".join(tools)
    return prompt


@dataclass(frozen=True)
class PromptState:
    """
    system_prompts: appended in order, concatenation order is insertion order.
    tools: replaced wholesale by with_tools().
    """
    system_prompts: Tuple[str, ...] = field(default_factory=tuple)
    tools: Tuple[str, ...] = field(default_factory=tuple)

    def with_system_prompt(self, text: str) -> "PromptState":
        return replace(self, system_prompts=self.system_prompts + (text,))

    def with_tools(self, descriptions: Iterable[str]) -> "PromptState":
        return replace(self, tools=tuple(descriptions))

    def compose(self) -> str:
        return compose_prompt(self.system_prompts, self.tools)

    def instruction(self) -> str:
        """Composed prompt, or '' when it holds no visible text (no instruction turn is sent)."""
        prompt = self.compose()
        return prompt if prompt.strip() else ""
