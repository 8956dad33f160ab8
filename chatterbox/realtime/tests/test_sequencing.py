import asyncio
import contextlib

from asgiref.sync import async_to_sync

from chatterbox.realtime.sequencing import ChatSequencer


def test_same_chat_runs_one_at_a_time():
    sequencer = ChatSequencer()
    trace = []

    async def work(name, delay):
        async with sequencer.hold(1):
            trace.append(f"{name}-start")
            await asyncio.sleep(delay)
            trace.append(f"{name}-end")

    async def main():
        await asyncio.gather(work("a", 0.02), work("b", 0))

    async_to_sync(main)()
    assert trace == ["a-start", "a-end", "b-start", "b-end"]
    assert len(sequencer) == 0


def test_different_chats_interleave():
    sequencer = ChatSequencer()
    trace = []

    async def work(chat_id, delay):
        async with sequencer.hold(chat_id):
            trace.append(f"{chat_id}-start")
            await asyncio.sleep(delay)
            trace.append(f"{chat_id}-end")

    async def main():
        await asyncio.gather(work(1, 0.02), work(2, 0))

    async_to_sync(main)()
    assert trace == ["1-start", "2-start", "2-end", "1-end"]


def test_lock_released_on_error():
    sequencer = ChatSequencer()

    async def fail():
        async with sequencer.hold(1):
            msg = "boom"
            raise RuntimeError(msg)

    async def main():
        with contextlib.suppress(RuntimeError):
            await fail()
        async with sequencer.hold(1):
            return len(sequencer)

    assert async_to_sync(main)() == 1
    assert len(sequencer) == 0
