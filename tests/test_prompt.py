import hashlib
from pathlib import Path

import pytest

from kncode.prompt import (
    PromptCacheState,
    SystemBlock,
    SystemPromptBuilder,
    load_custom_instructions,
)


def test_default_build_has_only_identity():
    builder = SystemPromptBuilder(Path("/work"))
    blocks = builder.build()
    assert len(blocks) == 1
    assert blocks[0].cache_control is True
    assert blocks[0].content.startswith("You are kncode")


def test_full_build_order_and_caching():
    builder = SystemPromptBuilder(
        Path("/work"),
        core_identity="core",
        custom_instructions="custom",
        permission_mode_prompt="mode",
        file_state_context="files",
        plugin_prompts=["plug"],
        skill_prompts=["skill"],
    ).with_tool_descriptions(["t1", "t2"])
    blocks = builder.build()
    assert blocks == [
        SystemBlock("core", True),
        SystemBlock("custom", True),
        SystemBlock("t1\n\nt2", True),
        SystemBlock("mode", False),
        SystemBlock("files", False),
        SystemBlock("plug", False),
        SystemBlock("skill", False),
    ]


def test_build_string_joins_blocks():
    builder = SystemPromptBuilder(Path("/w"), core_identity="a").with_permission_mode_prompt("b")
    assert builder.build_string() == "a\n\n---\n\nb"


def test_with_methods_leave_original_untouched():
    builder = SystemPromptBuilder(Path("/w"))
    updated = builder.with_tool_descriptions(["x"]).with_permission_mode_prompt("p")
    assert builder.tool_descriptions == []
    assert builder.permission_mode_prompt == ""
    assert updated.tool_descriptions == ["x"]
    assert updated.permission_mode_prompt == "p"


def test_load_custom_instructions_priority(tmp_path):
    (tmp_path / "CLAUDE.md").write_text("claude", encoding="utf-8")
    (tmp_path / "AGENTS.md").write_text("agents", encoding="utf-8")
    content, digest = load_custom_instructions(tmp_path)
    assert content == "agents"
    assert digest == hashlib.sha256(b"agents").hexdigest()


def test_load_custom_instructions_nested_file_wins(tmp_path):
    (tmp_path / ".kn-code").mkdir()
    (tmp_path / ".kn-code" / "AGENTS.md").write_text("nested", encoding="utf-8")
    (tmp_path / "AGENTS.md").write_text("top", encoding="utf-8")
    assert load_custom_instructions(tmp_path)[0] == "nested"


def test_load_custom_instructions_fallback(tmp_path):
    (tmp_path / ".github").mkdir()
    (tmp_path / ".github" / "copilot-instructions.md").write_text("gh", encoding="utf-8")
    assert load_custom_instructions(tmp_path)[0] == "gh"


def test_load_custom_instructions_none(tmp_path):
    assert load_custom_instructions(tmp_path) is None


@pytest.mark.parametrize(
    "old, new, expected",
    [
        (None, None, False),
        (None, "h", True),
        ("h", None, True),
        ("h", "h", False),
        ("h", "g", True),
    ],
)
def test_needs_refresh(old, new, expected):
    assert PromptCacheState(custom_instructions_hash=old).needs_refresh(new) is expected