"""Store 异步队列测试 -- 单消费者按提交顺序处理事件"""

import asyncio
import threading

import pytest
from dodos.core import DISPATCH, STATE, Store, StoreConfig, StoreError
from structlog.testing import capture_logs


async def wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("等待超时")
        await asyncio.sleep(0.01)


@pytest.fixture
def ordered_store() -> Store:
    """记录事件处理顺序的 Store"""
    store = Store({"seen": ()})
    store.register_state_event(
        "record", lambda state, tag: {"seen": (*state["seen"], tag)}
    )
    return store


class TestConsumer:
    """异步消费者"""

    async def test_events_processed_in_submission_order(self, ordered_store: Store):
        async with ordered_store as store:
            for tag in ["a", "b", "c", "d"]:
                store.dispatch("record", tag)
            await store.drain()
            assert store.state["seen"] == ("a", "b", "c", "d")

    async def test_dispatch_is_not_processed_synchronously(self, ordered_store: Store):
        async with ordered_store as store:
            store.dispatch("record", "x")
            assert store.state["seen"] == ()
            assert store.pending == 1
            await store.drain()
            assert store.state["seen"] == ("x",)

    async def test_followup_events_run_after_already_queued(self, ordered_store: Store):
        ordered_store.register_effects_event(
            "fan-out",
            lambda coeffects: {
                STATE: {"seen": (*coeffects[STATE]["seen"], "fan-out")},
                DISPATCH: [("record", "child-1"), ("record", "child-2")],
            },
        )
        async with ordered_store as store:
            store.dispatch("fan-out")
            store.dispatch("record", "sibling")
            await store.drain()
            # 子事件排在已入队的 sibling 之后
            assert store.state["seen"] == ("fan-out", "sibling", "child-1", "child-2")

    async def test_failed_event_does_not_stop_consumer(self, ordered_store: Store):
        def boom(state):
            raise RuntimeError("boom")

        ordered_store.register_state_event("boom", boom)
        with capture_logs() as logs:
            async with ordered_store as store:
                store.dispatch("boom")
                store.dispatch("record", "after")
                await store.drain()
        assert ordered_store.state["seen"] == ("after",)
        assert any(entry["event"] == "queued_event_failed" for entry in logs)

    async def test_flush_rejected_while_consumer_running(self, ordered_store: Store):
        async with ordered_store as store:
            with pytest.raises(StoreError):
                store.flush()

    async def test_start_is_idempotent(self, ordered_store: Store):
        ordered_store.start()
        ordered_store.start()
        ordered_store.dispatch("record", "once")
        await ordered_store.stop()
        assert ordered_store.state["seen"] == ("once",)

    async def test_stop_processes_pending_events(self, ordered_store: Store):
        ordered_store.start()
        ordered_store.dispatch("record", "a")
        ordered_store.dispatch("record", "b")
        await ordered_store.stop()
        assert ordered_store.state["seen"] == ("a", "b")
        assert ordered_store.pending == 0


class TestWithoutConsumer:
    """未启动消费者时的队列"""

    async def test_drain_flushes_inline(self, ordered_store: Store):
        ordered_store.dispatch("record", "a")
        ordered_store.dispatch("record", "b")
        await ordered_store.drain()
        assert ordered_store.state["seen"] == ("a", "b")

    async def test_bounded_queue_raises_when_full(self):
        store = Store({"seen": ()}, config=StoreConfig(queue_maxsize=1))
        store.register_state_event("record", lambda state, tag: state)
        store.dispatch("record", 1)
        with pytest.raises(asyncio.QueueFull):
            store.dispatch("record", 2)

    async def test_followups_not_limited_by_bound(self):
        store = Store({"seen": ()}, config=StoreConfig(queue_maxsize=1))
        store.register_state_event(
            "record", lambda state, tag: {"seen": (*state["seen"], tag)}
        )
        store.register_effects_event(
            "fan-out", lambda coeffects: {DISPATCH: [("record", 1), ("record", 2)]}
        )
        store.dispatch_sync("fan-out")
        assert store.pending == 2
        # 外部提交仍受上限约束
        with pytest.raises(asyncio.QueueFull):
            store.dispatch("record", 3)
        store.flush()
        assert store.state["seen"] == (1, 2)


class TestThreadsafeDispatch:
    """跨线程分发"""

    async def test_dispatch_from_worker_thread(self, ordered_store: Store):
        async with ordered_store as store:
            workers = [
                threading.Thread(target=store.dispatch_threadsafe, args=("record", n))
                for n in range(3)
            ]
            for worker in workers:
                worker.start()
            for worker in workers:
                worker.join()
            await wait_for(lambda: len(store.state["seen"]) == 3)
            assert sorted(store.state["seen"]) == [0, 1, 2]

    async def test_threadsafe_rejected_after_stop(self, ordered_store: Store):
        async with ordered_store:
            pass
        with pytest.raises(StoreError):
            ordered_store.dispatch_threadsafe("record", 1)

    async def test_threadsafe_waits_for_space(self):
        store = Store({"seen": ()}, config=StoreConfig(queue_maxsize=1))
        store.register_state_event(
            "record", lambda state, tag: {"seen": (*state["seen"], tag)}
        )

        def produce():
            futures = [store.dispatch_threadsafe("record", n) for n in range(5)]
            for future in futures:
                future.result(timeout=2)

        async with store:
            await asyncio.to_thread(produce)
            await store.drain()
        assert store.state["seen"] == (0, 1, 2, 3, 4)
