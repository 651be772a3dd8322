import io
import json

import pytest

from kncode.events import SdkEvent
from kncode.jsonl import create_emitter, write_batch, write_event


@pytest.mark.asyncio
async def test_emit_and_collect():
    emitter, receiver = create_emitter()
    event = SdkEvent.text("hello")
    emitter.emit(event)
    emitter.close()
    assert await receiver.collect() == [event.to_json()]


@pytest.mark.asyncio
async def test_emit_batch_preserves_order():
    emitter, receiver = create_emitter()
    events = [SdkEvent.text("a"), SdkEvent.text("b"), SdkEvent.error("c")]
    with emitter:
        emitter.emit_batch(events)
    lines = await receiver.collect()
    assert [SdkEvent.from_dict(json.loads(line)) for line in lines] == events


@pytest.mark.asyncio
async def test_unserialisable_event_is_dropped():
    emitter, receiver = create_emitter()
    emitter.emit(SdkEvent.tool_result("x", object()))
    emitter.emit(SdkEvent.text("ok"))
    emitter.close()
    assert await receiver.collect() == [SdkEvent.text("ok").to_json()]


@pytest.mark.asyncio
async def test_emit_after_close_is_ignored():
    emitter, receiver = create_emitter()
    emitter.close()
    emitter.emit(SdkEvent.text("late"))
    assert await receiver.collect() == []
    assert await receiver.collect() == []


@pytest.mark.asyncio
async def test_drain_to_stream():
    emitter, receiver = create_emitter()
    events = [SdkEvent.text("one"), SdkEvent.text("two")]
    emitter.emit_batch(events)
    emitter.close()
    out = io.StringIO()
    await receiver.drain_to(out)
    assert out.getvalue().splitlines() == [e.to_json() for e in events]
    assert out.getvalue().endswith("\n")


@pytest.mark.asyncio
async def test_drain_to_stdout(capsys):
    emitter, receiver = create_emitter()
    emitter.emit(SdkEvent.text("printed"))
    emitter.close()
    await receiver.drain_to_stdout()
    assert capsys.readouterr().out == SdkEvent.text("printed").to_json() + "\n"


def test_write_event():
    out = io.StringIO()
    event = SdkEvent.session_state("running", 2, 0.5)
    write_event(event, out)
    assert out.getvalue().endswith("\n")
    assert json.loads(out.getvalue()) == event.to_dict()


def test_write_batch():
    out = io.StringIO()
    events = [SdkEvent.text("a"), SdkEvent.unknown_session("s")]
    write_batch(events, out)
    lines = out.getvalue().splitlines()
    assert [json.loads(line) for line in lines] == [e.to_dict() for e in events]


def test_write_batch_writes_nothing_on_failure():
    out = io.StringIO()
    with pytest.raises(TypeError):
        write_batch([SdkEvent.text("a"), SdkEvent.tool_result("x", object())], out)
    assert out.getvalue() == ""