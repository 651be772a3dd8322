# kncode

Building blocks for running a coding agent without a terminal front end:
session storage, transcript compaction, recovery after an interruption,
system-prompt assembly, and the JSON-lines protocol used to drive a run
headlessly. Pure Python, no third-party dependencies.

## Modules

- `kncode.messages` – `UserMessage`, `AssistantMessage`, `ToolMessage` and
  `SystemMessage`, the content blocks `TextBlock`, `ThinkingBlock`,
  `ToolUseBlock` and `ToolResultBlock`, and `ToolCall`.
  `message_to_dict` / `message_from_dict` and `content_block_to_dict` /
  `content_block_from_dict` convert to and from the externally tagged JSON
  form (e.g. `{"User": {...}}`); malformed input raises `ValueError`.
  `message_role` returns a `MessageRole`.
- `kncode.store` – `SessionStore` keeps one directory per session under
  `base_dir`, holding `session.json` (a `SessionRecord`) and an append-only
  `messages.jsonl` transcript. `load_messages` skips lines it cannot parse.
  `update_session_state` raises `SessionNotFoundError` for a missing session;
  `append_message` raises `TranscriptTooLargeError` once the transcript
  reaches 50 MB.
- `kncode.manager` – `SessionManager` keeps its store in `data_dir/sessions`;
  `resume_session` raises `SessionNotFoundError` when there is no record.
- `kncode.compact` – `Compactor` (defaults: `max_tokens=180_000`,
  `target_tokens=80_000`). `compact` keeps the leading system messages and the
  last four messages, replacing everything between with one
  `compaction_summary` system message.
- `kncode.recovery` – `RecoveryManager.analyze` finds tool calls that never got
  a result and returns a `RecoveryState`; `build_handoff_message` turns it
  into a `recovery` system message.
- `kncode.prompt` – `SystemPromptBuilder` assembles `SystemBlock`s in a fixed
  order, marking stable ones as cacheable; `build_string` joins them.
  `load_custom_instructions(cwd)` returns the content and SHA-256 of the first
  project instruction file found (`.kn-code/AGENTS.md`, `AGENTS.md`,
  `.claude/CLAUDE.md`, `CLAUDE.md`, `.cursorrules`,
  `.github/copilot-instructions.md`), or `None`. `PromptCacheState.needs_refresh`
  tells whether the instructions hash changed.
- `kncode.events` – `SdkEvent` and `TokenUsage`: the events written in
  headless mode, with constructors such as `SdkEvent.session_init`,
  `SdkEvent.tool_use`, `SdkEvent.step_finish`, `SdkEvent.result_success` and
  `SdkEvent.unknown_session`, plus `to_dict`, `to_json` and `from_dict`.
- `kncode.jsonl` – `create_emitter()` returns a connected `JsonlEmitter` /
  `JsonlReceiver` pair over an asyncio queue; the receiver's `collect`,
  `drain_to` and `drain_to_stdout` read until the emitter is closed.
  `write_event` and `write_batch` write straight to a stream (stdout by default).
- `kncode.control` – `SdkControlRequest` and `SdkControlResponse` for the
  control channel, and `create_control_channel()`, which returns a connected
  `ControlSender` / `ControlChannel` pair over bounded asyncio queues.
- `kncode.command_queue` – `CommandQueue` of `QueuedCommand`s, limited to
  10,000 entries (`push` raises `QueueFullError` beyond that); `next` waits
  for a command, `try_next` does not, `has_cancel` looks for a pending cancel.
- `kncode.sse` – `format_sse_event(line)` frames a line as a server-sent
  event; `jsonl_stream(lines)` is an async generator doing that for every line
  of a sync or async iterable.
- `kncode.rate_limit` – `RateLimiter`, a token bucket per client
  (60 requests a minute by default, a new client starting with one token,
  idle clients forgotten after ten minutes). `check_rate_limit(client_id)`
  returns whether the request is allowed. A `clock` can be injected.
- `kncode.health` – `init_start_time()` and `health()`, which returns a
  `HealthResponse` with status, version and uptime in seconds.
- `kncode.run_request` – `RunRequest.from_dict` and `RunRequest.validate`
  (prompt length, `max_turns`, environment variable count and prefixes),
  `parse_permission_mode` and `resolve_cwd`; failures raise `RunRequestError`.
- `kncode.session_routes` – handlers `list_sessions`, `get_session`,
  `cancel_session` and `get_transcript`, each taking a `SessionStore`; all but
  `list_sessions` return an `(HTTPStatus, body)` pair. `is_valid_session_id`
  checks ids before they are used as directory names.
- `kncode.workspace` – `Workspace`, a temporary directory usable as a context
  manager, with `create_file`; plus `try_create_file` and `mock_json_response`.

## Installation

```
pip install .
```

## Example

```python
from pathlib import Path

from kncode.compact import Compactor
from kncode.messages import TextBlock, UserMessage
from kncode.store import SessionStore

store = SessionStore(Path("sessions"))
record = store.create_session(Path.cwd(), "anthropic/claude-sonnet-4-5")
store.append_message(record.id, UserMessage(content=[TextBlock("Fix the failing test")]))

messages = store.load_messages(record.id)
compactor = Compactor()
if compactor.needs_compaction(200_000):
    messages = compactor.compact(messages)
```

Emitting headless events:

```python
import sys

from kncode.events import SdkEvent, TokenUsage
from kncode.jsonl import write_event

write_event(SdkEvent.session_init("abc", "openai/gpt-4o"), sys.stdout)
write_event(SdkEvent.step_finish(TokenUsage(input_tokens=10, output_tokens=5), 0.01), sys.stdout)
```

## What this package does not do

- It has no HTTP server and no command-line entry point. The session handlers,
  `health`, `RateLimiter` and `jsonl_stream` return plain values for a web
  framework of your choice to serve.
- It does not run an agent or talk to any model provider. `RunRequest` only
  decodes and validates a request; starting the run is left to the caller.
- There is no authentication, credential storage, tool execution or
  messaging-bus integration.

## Running the tests

```
pip install ".[test]"
pytest
```