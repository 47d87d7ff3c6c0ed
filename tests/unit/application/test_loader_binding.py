"""LoaderBinding 测试

业务场景：
- 单飞：未 force 时重复 load 只产生一次调用
- force 覆盖：总是重新调用，并取消存活调用
- 结果（成功或失败）按名称写入 SharedStateStore
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from action_loader.application.loader_binding import LoaderBinding, create_loader
from action_loader.application.loader_provider import LoaderProvider
from action_loader.config import LoaderOptions
from action_loader.domain.exceptions import LoaderContextError
from action_loader.domain.value_objects.execution_state import ExecutionState
from action_loader.domain.value_objects.response_envelope import Failure, response


class NetworkError(Exception):
    pass


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_loads_call_once(self, store):
        """测试：快速连续两次 load() 只有一次调用到达 store"""
        operation = AsyncMock(return_value=response.success({"name": "Ada"}))
        writes = []
        store.subscribe(writes.append)
        loader = create_loader("profile", operation)(store=store)

        first, second = await asyncio.gather(loader.load(), loader.load())

        assert operation.await_count == 1
        assert first.data == {"name": "Ada"}
        assert second is None
        assert len(writes) == 1
        assert loader.result.data == {"name": "Ada"}

    @pytest.mark.asyncio
    async def test_load_is_idempotent_after_completion(self, store):
        operation = AsyncMock(return_value=response.success(1))
        loader = LoaderBinding("counter", operation, store)

        await loader.load()
        await loader.load()

        assert operation.await_count == 1
        assert loader.loaded is True

    @pytest.mark.asyncio
    async def test_force_reload(self, store):
        """测试：load(force=True) 总是触发新调用"""
        operation = AsyncMock(side_effect=[response.success("v1"), response.success("v2")])
        loader = LoaderBinding("config", operation, store)

        await loader.load()
        await loader.load(force=True)

        assert operation.await_count == 2
        assert store.get("config").data == "v2"

    @pytest.mark.asyncio
    async def test_force_cancels_in_flight_load(self, store, gated_operation):
        """测试：A 进行中 force 启动 B，即使 A 后完成，store 里也是 B 的结果"""
        operation = gated_operation([response.success("A"), response.success("B")])
        loader = LoaderBinding("feed", operation, store)

        task_a = asyncio.create_task(loader.load("page-1"))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(loader.load("page-1", force=True))
        await asyncio.sleep(0)

        operation.release(1)
        await task_b
        operation.release(0)
        await task_a

        assert store.get("feed").data == "B"
        assert operation.calls == [("page-1",), ("page-1",)]

    @pytest.mark.asyncio
    async def test_arguments_are_forwarded(self, store):
        operation = AsyncMock(return_value=response.success(None))
        loader = LoaderBinding("search", operation, store)

        await loader.load("query", 2)

        assert operation.await_args.args[:2] == ("query", 2)


class TestStoreWrites:
    @pytest.mark.asyncio
    async def test_business_failure_is_cached(self, store):
        loader = LoaderBinding("profile", AsyncMock(return_value=response.error("forbidden")), store)

        await loader.load()

        assert loader.result == Failure(message="forbidden")
        assert loader.state is ExecutionState.SUCCESS

    @pytest.mark.asyncio
    async def test_retry_then_failure_is_cached(self, store):
        """测试：retry_limit=1, retry_delay_ms=10 → 两次调用间隔约 10ms，store 里是 Failure"""
        loop = asyncio.get_running_loop()
        times = []

        async def fetch_profile(signal):
            times.append(loop.time())
            raise NetworkError()

        loader = create_loader("profile", fetch_profile)(
            store=store, retry_limit=1, retry_delay_ms=10
        )

        await loader.load()

        assert len(times) == 2
        assert times[1] - times[0] >= 0.008
        assert store.get("profile") == Failure(message="NetworkError")
        assert loader.state is ExecutionState.ERROR

    @pytest.mark.asyncio
    async def test_cancel_leaves_store_untouched(self, store):
        async def slow(signal):
            await signal.wait()
            signal.raise_if_cancelled()

        loader = LoaderBinding("slow", slow, store)
        task = asyncio.create_task(loader.load())
        await asyncio.sleep(0)

        assert loader.is_running is True
        assert loader.cancel() is True
        await task

        assert loader.result is None
        assert loader.state is ExecutionState.IDLE

    @pytest.mark.asyncio
    async def test_reset_entry_clears_result(self, store):
        loader = LoaderBinding("profile", AsyncMock(return_value=response.success(1)), store)
        await loader.load()

        store.reset("profile")

        assert loader.result is None


class TestRateLimitedLoad:
    @pytest.mark.asyncio
    async def test_debounced_load_collapses_calls(self, store):
        operation = AsyncMock(return_value=response.success(None))
        loader = LoaderBinding("search", operation, store, LoaderOptions(debounce_ms=30))

        for query in ("a", "ab", "abc"):
            loader.debounced_load(query, force=True)
        await asyncio.sleep(0.08)

        assert operation.await_count == 1
        assert operation.await_args.args[0] == "abc"

    @pytest.mark.asyncio
    async def test_throttled_load_fires_leading_call(self, store):
        operation = AsyncMock(return_value=response.success(None))
        loader = LoaderBinding("search", operation, store, LoaderOptions(throttle_ms=200))

        loader.throttled_load("a")
        await asyncio.sleep(0.01)

        assert operation.await_count == 1
        loader.dispose()

    @pytest.mark.asyncio
    async def test_dispose_cancels_pending_timers(self, store):
        operation = AsyncMock(return_value=response.success(None))
        with LoaderBinding("search", operation, store, LoaderOptions(debounce_ms=20)) as loader:
            loader.debounced_load("a")
            assert loader.debounced_load.pending is True

        await asyncio.sleep(0.05)

        operation.assert_not_awaited()
        assert loader.controller.disposed is True


class TestLoaderFactory:
    def test_requires_store_or_provider(self):
        """测试：没有 Provider 也没有显式 store 时抛出 LoaderContextError"""
        use_profile = create_loader("profile", AsyncMock())

        with pytest.raises(LoaderContextError):
            use_profile()

    def test_uses_current_provider(self):
        use_profile = create_loader("profile", AsyncMock())

        with LoaderProvider() as provider:
            loader = use_profile()

        assert loader.store is provider.store
        assert loader.name == "profile"

    def test_explicit_store_wins_over_provider(self, store):
        use_profile = create_loader("profile", AsyncMock())

        with LoaderProvider():
            loader = use_profile(store=store)

        assert loader.store is store

    def test_options_are_validated(self, store):
        use_profile = create_loader("profile", AsyncMock())

        with pytest.raises(ValidationError):
            use_profile(store=store, retry_limit=-1)
        with pytest.raises(ValidationError):
            use_profile(store=store, retries=3)

    def test_options_are_applied(self, store):
        loader = create_loader("profile", AsyncMock())(
            store=store, retry_limit=2, debounce_ms=15, throttle_ms=0
        )

        assert loader.options.retry_limit == 2
        assert loader.debounced_load.delay_ms == 15
        assert loader.throttled_load.delay_ms == 0
