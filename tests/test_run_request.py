from pathlib import Path

import pytest

from kncode.run_request import (
    MAX_PROMPT_LENGTH,
    PermissionMode,
    RunRequest,
    RunRequestError,
    parse_permission_mode,
    resolve_cwd,
)


def test_valid_request_passes():
    request = RunRequest(prompt="fix the bug", max_turns=100, env={"PATH": "/bin"})
    request.validate()
    assert request.prompt == "fix the bug"


def test_empty_prompt_rejected():
    with pytest.raises(RunRequestError, match="Prompt cannot be empty"):
        RunRequest(prompt="").validate()


def test_prompt_length_limit():
    RunRequest(prompt="x" * MAX_PROMPT_LENGTH).validate()
    with pytest.raises(RunRequestError, match="maximum length"):
        RunRequest(prompt="x" * (MAX_PROMPT_LENGTH + 1)).validate()


def test_prompt_length_counts_bytes():
    with pytest.raises(RunRequestError, match="maximum length"):
        RunRequest(prompt="é" * (MAX_PROMPT_LENGTH // 2 + 1)).validate()


def test_max_turns_limit():
    with pytest.raises(RunRequestError, match="max_turns exceeds maximum of 100"):
        RunRequest(prompt="go", max_turns=101).validate()


def test_too_many_env_vars():
    env = {f"PATH_{i}": "v" for i in range(21)}
    with pytest.raises(RunRequestError, match="Too many environment variables"):
        RunRequest(prompt="go", env=env).validate()


def test_disallowed_env_var():
    with pytest.raises(RunRequestError, match="'EDITOR' is not allowed"):
        RunRequest(prompt="go", env={"EDITOR": "vim"}).validate()


@pytest.mark.parametrize("key", ["NODE_ENV", "PYTHONPATH", "GOPATH", "RUST_LOG", "CI_JOB"])
def test_allowed_env_prefixes(key):
    request = RunRequest(prompt="go", env={key: "v"})
    request.validate()
    assert key in request.env


def test_from_dict_reads_fields():
    request = RunRequest.from_dict(
        {"prompt": "hi", "model": "openai/gpt-4o", "max_turns": 5, "stream": True}
    )
    assert request.prompt == "hi"
    assert request.model == "openai/gpt-4o"
    assert request.max_turns == 5
    assert request.stream is True
    assert request.cwd is None


def test_from_dict_requires_prompt():
    with pytest.raises(RunRequestError):
        RunRequest.from_dict({"model": "m"})


def test_from_dict_rejects_negative_turns():
    with pytest.raises(RunRequestError):
        RunRequest.from_dict({"prompt": "hi", "max_turns": -1})


@pytest.mark.parametrize(
    "value, expected",
    [
        ("auto", PermissionMode.AUTO),
        ("ask", PermissionMode.ASK),
        ("bypass", PermissionMode.BYPASS_PERMISSIONS),
        ("other", PermissionMode.BYPASS_PERMISSIONS),
        (None, PermissionMode.BYPASS_PERMISSIONS),
    ],
)
def test_parse_permission_mode(value, expected):
    assert parse_permission_mode(value) is expected


def test_resolve_cwd_relative_rejected():
    with pytest.raises(RunRequestError, match="cwd must be an absolute path"):
        resolve_cwd("relative/dir")


def test_resolve_cwd_missing_rejected(tmp_path):
    with pytest.raises(RunRequestError, match="cwd does not exist"):
        resolve_cwd(str(tmp_path / "missing"))


def test_resolve_cwd_existing(tmp_path):
    assert resolve_cwd(str(tmp_path)) == tmp_path.resolve()


def test_resolve_cwd_default_is_process_cwd():
    assert resolve_cwd(None) == Path.cwd().resolve()