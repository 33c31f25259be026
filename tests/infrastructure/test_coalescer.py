"""Request Coalescer tests — single-flight deduplication without result caching."""

import asyncio
import gc

import pytest

from ventures_client.infrastructure.coalescer import RequestCoalescer


class _CountingFactory:
    """Factory whose calls block until released."""

    def __init__(self, result=None, error=None):
        self.calls = 0
        self.release = asyncio.Event()
        self.result = result
        self.error = error

    async def __call__(self):
        self.calls += 1
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


async def test_concurrent_callers_share_one_call():
    coalescer = RequestCoalescer()
    factory = _CountingFactory(result={"id": 1})

    first = asyncio.create_task(coalescer.coalesce("profile", factory))
    second = asyncio.create_task(coalescer.coalesce("profile", factory))
    await asyncio.sleep(0)
    assert coalescer.is_pending("profile")

    factory.release.set()
    a, b = await asyncio.gather(first, second)

    assert factory.calls == 1
    assert a is b


async def test_concurrent_callers_share_the_same_error():
    coalescer = RequestCoalescer()
    factory = _CountingFactory(error=RuntimeError("down"))

    tasks = [asyncio.create_task(coalescer.coalesce("k", factory)) for _ in range(3)]
    await asyncio.sleep(0)
    factory.release.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert factory.calls == 1
    assert all(isinstance(r, RuntimeError) for r in results)
    assert results[0] is results[1] is results[2]


async def test_settled_result_is_not_reused():
    coalescer = RequestCoalescer()
    factory = _CountingFactory(result="ok")
    factory.release.set()

    await coalescer.coalesce("k", factory)
    await coalescer.coalesce("k", factory)

    assert factory.calls == 2
    assert coalescer.pending_keys == []


async def test_key_released_after_failure():
    coalescer = RequestCoalescer()
    factory = _CountingFactory(error=ValueError("bad"))
    factory.release.set()

    with pytest.raises(ValueError):
        await coalescer.coalesce("k", factory)

    assert not coalescer.is_pending("k")


async def test_different_keys_do_not_coalesce():
    coalescer = RequestCoalescer()
    factory = _CountingFactory(result=1)
    factory.release.set()

    await asyncio.gather(coalescer.coalesce("a", factory), coalescer.coalesce("b", factory))

    assert factory.calls == 2


async def test_cancelling_one_waiter_keeps_shared_call_alive():
    coalescer = RequestCoalescer()
    factory = _CountingFactory(result="done")

    first = asyncio.create_task(coalescer.coalesce("k", factory))
    second = asyncio.create_task(coalescer.coalesce("k", factory))
    await asyncio.sleep(0)

    first.cancel()
    factory.release.set()

    assert await second == "done"
    assert first.cancelled()


async def test_failure_after_every_waiter_cancelled_is_not_reported():
    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        coalescer = RequestCoalescer()
        factory = _CountingFactory(error=RuntimeError("boom"))

        waiter = asyncio.create_task(coalescer.coalesce("k", factory))
        await asyncio.sleep(0)
        waiter.cancel()
        factory.release.set()
        for _ in range(5):
            await asyncio.sleep(0)

        assert waiter.cancelled()
        assert coalescer.is_pending("k") is False
        del waiter
        gc.collect()

        assert reported == []
    finally:
        loop.set_exception_handler(None)
