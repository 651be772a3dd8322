import asyncio

import pytest

from kncode.command_queue import (
    MAX_QUEUE_SIZE,
    CommandKind,
    CommandQueue,
    QueueFullError,
    QueuedCommand,
)


def _message(text):
    return QueuedCommand(CommandKind.MESSAGE, content=text)


def test_fifo_order():
    queue = CommandQueue()
    queue.push(_message("a"))
    queue.push(_message("b"))
    assert queue.try_next() == _message("a")
    assert queue.try_next() == _message("b")
    assert queue.try_next() is None


def test_pending_and_length():
    queue = CommandQueue()
    assert not queue.has_pending()
    queue.push(_message("a"))
    assert queue.has_pending()
    assert len(queue) == 1


def test_has_cancel_and_clear():
    queue = CommandQueue()
    queue.push(_message("a"))
    assert not queue.has_cancel()
    queue.push(QueuedCommand(CommandKind.CANCEL))
    assert queue.has_cancel()
    queue.clear()
    assert len(queue) == 0
    assert not queue.has_cancel()


def test_queue_full():
    queue = CommandQueue()
    for i in range(MAX_QUEUE_SIZE):
        queue.push(_message(str(i)))
    with pytest.raises(QueueFullError, match="Command queue is full"):
        queue.push(_message("overflow"))
    assert len(queue) == MAX_QUEUE_SIZE


def test_command_requires_fields():
    with pytest.raises(ValueError):
        QueuedCommand(CommandKind.GRANT_PERMISSION)


def test_command_kind_from_string():
    command = QueuedCommand("set_mode", mode="auto")
    assert command.kind is CommandKind.SET_MODE


@pytest.mark.asyncio
async def test_next_returns_queued_command():
    queue = CommandQueue()
    queue.push(_message("ready"))
    assert await queue.next() == _message("ready")


@pytest.mark.asyncio
async def test_next_waits_for_push():
    queue = CommandQueue()
    task = asyncio.create_task(queue.next())
    await asyncio.sleep(0)
    assert not task.done()
    queue.push(QueuedCommand(CommandKind.DENY_PERMISSION, request_id="r", message="no"))
    result = await asyncio.wait_for(task, timeout=1)
    assert result.request_id == "r"
    assert result.message == "no"