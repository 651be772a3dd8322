"""Building the system prompt as cache-aware blocks."""

from __future__ import annotations

import dataclasses
import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_CORE_IDENTITY = """You are kncode, an AI coding agent running in a terminal environment.

You are a highly capable, detail-oriented coding assistant that helps users with software engineering tasks.
You have access to tools that let you execute shell commands, read and write files, search codebases, and more.

Guidelines:
- Always read files before editing them
- Use the appropriate tool for each task
- Be thorough but concise
- When making changes, ensure the code compiles and tests pass
- If you're unsure about something, ask the user
- Never make assumptions about file contents — always read first"""

_INSTRUCTION_FILES = (
    ".kn-code/AGENTS.md",
    "AGENTS.md",
    ".claude/CLAUDE.md",
    "CLAUDE.md",
    ".cursorrules",
    ".github/copilot-instructions.md",
)

BLOCK_SEPARATOR = "\n\n---\n\n"


@dataclass(frozen=True)
class SystemBlock:
    """One block of the system prompt; cache_control marks it as cacheable."""

    content: str
    cache_control: bool


def load_custom_instructions(cwd) -> Optional[tuple]:
    """Return (content, sha256 hex) of the first project instruction file found, or None."""
    base = Path(cwd)
    for relative in _INSTRUCTION_FILES:
        path = base / relative
        if path.exists():
            content = path.read_text(encoding="utf-8")
            digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
            return content, digest
    return None


@dataclass
class SystemPromptBuilder:
    working_directory: Path
    core_identity: str = DEFAULT_CORE_IDENTITY
    custom_instructions: Optional[str] = None
    custom_instructions_hash: Optional[str] = None
    tool_descriptions: list = field(default_factory=list)
    tool_descriptions_hash: Optional[str] = None
    permission_mode_prompt: str = ""
    file_state_context: Optional[str] = None
    plugin_prompts: list = field(default_factory=list)
    skill_prompts: list = field(default_factory=list)

    def with_tool_descriptions(self, descriptions) -> "SystemPromptBuilder":
        return dataclasses.replace(self, tool_descriptions=list(descriptions))

    def with_permission_mode_prompt(self, prompt: str) -> "SystemPromptBuilder":
        return dataclasses.replace(self, permission_mode_prompt=prompt)

    def build(self) -> list:
        """Return the prompt blocks in order: stable, cacheable content first."""
        blocks = [SystemBlock(self.core_identity, True)]
        if self.custom_instructions is not None:
            blocks.append(SystemBlock(self.custom_instructions, True))
        if self.tool_descriptions:
            blocks.append(SystemBlock("\n\n".join(self.tool_descriptions), True))
        if self.permission_mode_prompt:
            blocks.append(SystemBlock(self.permission_mode_prompt, False))
        if self.file_state_context is not None:
            blocks.append(SystemBlock(self.file_state_context, False))
        blocks.extend(SystemBlock(p, False) for p in self.plugin_prompts)
        blocks.extend(SystemBlock(p, False) for p in self.skill_prompts)
        return blocks

    def build_string(self) -> str:
        """Return the whole prompt as one string, for providers without block support."""
        return BLOCK_SEPARATOR.join(block.content for block in self.build())


@dataclass
class PromptCacheState:
    core_identity_hash: str = ""
    custom_instructions_hash: Optional[str] = None
    tool_descriptions_hash: Optional[str] = None

    def needs_refresh(self, new_instructions_hash: Optional[str]) -> bool:
        return self.custom_instructions_hash != new_instructions_hash