"""Validating requests to start an agent run."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

MAX_PROMPT_LENGTH = 50_000
MAX_TURNS = 100
MAX_ENV_VARS = 20
ALLOWED_ENV_PREFIXES = (
    "PATH",
    "HOME",
    "USER",
    "LANG",
    "TERM",
    "NODE_",
    "PYTHON",
    "GO",
    "RUST_",
    "CI_",
    "NPM_",
)
DEFAULT_MODEL = "anthropic/claude-sonnet-4-5"
DEFAULT_MAX_TURNS = 50


class RunRequestError(ValueError):
    """Raised when a run request is malformed or not allowed."""


class PermissionMode(enum.Enum):
    AUTO = "auto"
    ASK = "ask"
    BYPASS_PERMISSIONS = "bypass"


def parse_permission_mode(value: Optional[str]) -> PermissionMode:
    """Map the request's mode name to a mode; anything unknown bypasses permissions."""
    if value == "auto":
        return PermissionMode.AUTO
    if value == "ask":
        return PermissionMode.ASK
    return PermissionMode.BYPASS_PERMISSIONS


def _optional(data: dict, name: str, kind: type) -> Any:
    value = data.get(name)
    if value is None:
        return None
    if kind is int and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
        raise RunRequestError(f"{name} must be a non-negative integer")
    if not isinstance(value, kind):
        raise RunRequestError(f"{name} must be of type {kind.__name__}")
    return value


@dataclass
class RunRequest:
    prompt: str
    cwd: Optional[str] = None
    model: Optional[str] = None
    variant: Optional[str] = None
    session_id: Optional[str] = None
    permission_mode: Optional[str] = None
    max_turns: Optional[int] = None
    timeout_seconds: Optional[int] = None
    stream: Optional[bool] = None
    env: Optional[dict] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RunRequest":
        """Decode a request body; raises RunRequestError on missing or mistyped fields."""
        if not isinstance(data, dict):
            raise RunRequestError("request body must be an object")
        prompt = data.get("prompt")
        if not isinstance(prompt, str):
            raise RunRequestError("prompt is required and must be a string")
        env = data.get("env")
        if env is not None:
            if not isinstance(env, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in env.items()
            ):
                raise RunRequestError("env must map strings to strings")
            env = dict(env)
        return cls(
            prompt=prompt,
            cwd=_optional(data, "cwd", str),
            model=_optional(data, "model", str),
            variant=_optional(data, "variant", str),
            session_id=_optional(data, "session_id", str),
            permission_mode=_optional(data, "permission_mode", str),
            max_turns=_optional(data, "max_turns", int),
            timeout_seconds=_optional(data, "timeout_seconds", int),
            stream=_optional(data, "stream", bool),
            env=env,
        )

    def validate(self) -> None:
        """Raise RunRequestError if the request breaks a limit."""
        if not self.prompt:
            raise RunRequestError("Prompt cannot be empty")
        if len(self.prompt.encode("utf-8")) > MAX_PROMPT_LENGTH:
            raise RunRequestError(
                f"Prompt exceeds maximum length of {MAX_PROMPT_LENGTH} characters"
            )
        if self.max_turns is not None and self.max_turns > MAX_TURNS:
            raise RunRequestError(f"max_turns exceeds maximum of {MAX_TURNS}")
        if self.env is not None:
            if len(self.env) > MAX_ENV_VARS:
                raise RunRequestError(f"Too many environment variables (max {MAX_ENV_VARS})")
            for key in self.env:
                if not key.startswith(ALLOWED_ENV_PREFIXES):
                    raise RunRequestError(f"Environment variable '{key}' is not allowed")


def resolve_cwd(cwd: Optional[str]) -> Path:
    """Return the run's working directory, canonicalised; it must be absolute and exist."""
    path = Path(cwd) if cwd is not None else Path.cwd()
    if not path.is_absolute():
        raise RunRequestError("cwd must be an absolute path")
    try:
        path = path.resolve(strict=True)
    except OSError:
        pass
    if not path.exists():
        raise RunRequestError(f"cwd does not exist: {path}")
    return path