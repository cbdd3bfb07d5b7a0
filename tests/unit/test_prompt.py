# tests/unit/test_prompt.py

from __future__ import annotations
import sys
from pathlib import Path

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from chatbridge.core.prompt import PromptState, compose_prompt  # type: ignore


def test_system_prompts_joined_with_blank_line():
    assert compose_prompt(["Be terse.", "Answer in English."], []) == "Be terse.\n\nAnswer in English."


def test_tools_section_appended():
    out = compose_prompt(["Be terse."], ["tool A docs", "tool B docs"])
    assert out == "Be terse.\n## Available Tools\n\ntool A docs\n\ntool B docs"


def test_nothing_configured_is_empty_string():
    assert compose_prompt([], []) == ""


def test_tools_without_system_prompts():
    out = compose_prompt([], ["tool A docs"])
    assert "## Available Tools" in out
    assert out.index("## Available Tools") < out.index("tool A docs")


def test_compose_is_pure():
    state = PromptState().with_system_prompt("a").with_tools(["t"])
    assert state.compose() == state.compose()


def test_state_is_append_and_replace():
    base = PromptState()
    one = base.with_system_prompt("first")
    two = one.with_system_prompt("second").with_tools(["x", "y"]).with_tools(["z"])

    # earlier values are untouched
    assert base.system_prompts == ()
    assert one.system_prompts == ("first",)
    assert two.system_prompts == ("first", "second")
    assert two.tools == ("z",)


def test_instruction_blank_when_only_empty_prompts():
    state = PromptState().with_system_prompt("").with_system_prompt("  ")
    assert state.compose() != ""
    assert state.instruction() == ""
    assert PromptState().with_tools(["t"]).instruction().strip().startswith("## Available Tools")
