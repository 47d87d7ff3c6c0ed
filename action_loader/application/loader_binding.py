"""LoaderBinding - 按名称缓存、单飞的加载器

业务定义：
- 结果写入 SharedStateStore[name]，成功和失败信封都会写入
- load() 默认幂等：第一次调用之后（包括仍在进行中）再次调用是空操作
- load(force=True) 总是重新调用，并先取消存活的调用
- debounced_load / throttled_load 是 load 的速率限制版本

使用示例：
    use_profile = create_loader("profile", fetch_profile)

    with LoaderProvider() as provider:
        loader = use_profile(retry_limit=1, retry_delay_ms=10)
        await loader.load("u-1")
        loader.result          # Success(...) 或 Failure(...)
        await loader.load("u-1", force=True)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from action_loader.application.loader_provider import resolve_store
from action_loader.config import LoaderOptions
from action_loader.domain.services.execution_controller import (
    ExecutionController,
    InvocationCallbacks,
    StateListener,
)
from action_loader.domain.services.rate_limiter import Debouncer, Throttler
from action_loader.domain.services.shared_state_store import SharedStateStore
from action_loader.domain.value_objects.execution_state import ExecutionState
from action_loader.domain.value_objects.response_envelope import Failure, Success

logger = logging.getLogger(__name__)

T = TypeVar("T")

Envelope = Success[Any] | Failure


class LoaderBinding(Generic[T]):
    def __init__(
        self,
        name: str,
        operation: Callable[..., Awaitable[Success[T] | Failure]],
        store: SharedStateStore,
        options: LoaderOptions | None = None,
    ) -> None:
        self._name = name
        self._store = store
        self._options = options or LoaderOptions()
        self._loaded = False
        self._controller: ExecutionController[T] = ExecutionController(
            operation,
            retry_limit=self._options.retry_limit,
            retry_delay_ms=self._options.retry_delay_ms,
            callbacks=InvocationCallbacks(on_success=self._write, on_error=self._write),
            name=name,
        )
        self.debounced_load = Debouncer(self.load, self._options.debounce_ms)
        self.throttled_load = Throttler(self.load, self._options.throttle_ms)

    @property
    def name(self) -> str:
        return self._name

    @property
    def store(self) -> SharedStateStore:
        return self._store

    @property
    def options(self) -> LoaderOptions:
        return self._options

    @property
    def result(self) -> Envelope | None:
        """当前缓存的信封，未加载或已 reset 时为 None"""
        return self._store.get(self._name)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def state(self) -> ExecutionState:
        return self._controller.state

    @property
    def is_running(self) -> bool:
        return self._controller.is_running

    @property
    def controller(self) -> ExecutionController[T]:
        return self._controller

    async def load(self, *args: Any, force: bool = False) -> Envelope | None:
        """加载并写入 store

        非 force 且已经加载过（或正在加载）时直接返回 None。
        """
        if not force and (self._loaded or self._controller.is_running):
            logger.debug(f"[{self._name}] load skipped: already loaded")
            return None

        self._loaded = True
        return await self._controller.invoke(*args)

    def cancel(self) -> bool:
        return self._controller.cancel()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._controller.subscribe(listener)

    def dispose(self) -> None:
        self.debounced_load.cancel()
        self.throttled_load.cancel()
        self._controller.dispose()

    def __enter__(self) -> LoaderBinding[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _write(self, envelope: Envelope) -> None:
        self._store.set_entry(self._name, envelope)


class LoaderFactory(Generic[T]):
    """create_loader() 的返回值，每次调用产生一个新的 LoaderBinding"""

    def __init__(
        self,
        name: str,
        operation: Callable[..., Awaitable[Success[T] | Failure]],
    ) -> None:
        self.name = name
        self.operation = operation

    def __call__(
        self,
        *,
        store: SharedStateStore | None = None,
        **options: Any,
    ) -> LoaderBinding[T]:
        resolved = resolve_store(store, "use_loader")
        return LoaderBinding(self.name, self.operation, resolved, LoaderOptions(**options))


def create_loader(
    name: str,
    operation: Callable[..., Awaitable[Success[T] | Failure]],
) -> LoaderFactory[T]:
    return LoaderFactory(name, operation)
