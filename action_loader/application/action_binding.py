"""ActionBinding - 每次调用都执行、不缓存的动作

业务定义：
- execute() 每次都会调用操作，并自动取消同一绑定上仍在进行的调用
- 不写 SharedStateStore，结果通过回调和 progress 暴露
- 单次调用回调与绑定级回调叠加：两者都会触发（绑定级在前）

使用示例：
    save = use_action(save_profile, on_success=notify_saved, debounce_ms=300)

    await save.execute({"name": "x"}, callbacks=ActionCallbacks(on_error=show_error))
    save.progress          # ExecutionState.SUCCESS
    save.debounced_execute({"name": "y"})
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from action_loader.config import ActionOptions
from action_loader.domain.services.execution_controller import (
    EnvelopeCallback,
    ExecutionController,
    FinallyCallback,
    InvocationCallbacks,
    StateListener,
)
from action_loader.domain.services.rate_limiter import Debouncer, Throttler
from action_loader.domain.value_objects.execution_state import ExecutionState
from action_loader.domain.value_objects.response_envelope import Failure, Success

T = TypeVar("T")

Envelope = Success[Any] | Failure
ActionCallbacks = InvocationCallbacks


class ActionBinding(Generic[T]):
    def __init__(
        self,
        operation: Callable[..., Awaitable[Success[T] | Failure]],
        options: ActionOptions | None = None,
        callbacks: ActionCallbacks | None = None,
    ) -> None:
        self._options = options or ActionOptions()
        self._controller: ExecutionController[T] = ExecutionController(
            operation,
            callbacks=callbacks,
        )
        self.debounced_execute = Debouncer(self.execute, self._options.debounce_ms)
        self.throttled_execute = Throttler(self.execute, self._options.throttle_ms)

    @property
    def options(self) -> ActionOptions:
        return self._options

    @property
    def progress(self) -> ExecutionState:
        return self._controller.state

    @property
    def is_running(self) -> bool:
        return self._controller.is_running

    @property
    def controller(self) -> ExecutionController[T]:
        return self._controller

    async def execute(
        self,
        *args: Any,
        callbacks: ActionCallbacks | None = None,
    ) -> Envelope | None:
        return await self._controller.invoke(*args, callbacks=callbacks)

    def cancel(self) -> bool:
        return self._controller.cancel()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._controller.subscribe(listener)

    def dispose(self) -> None:
        self.debounced_execute.cancel()
        self.throttled_execute.cancel()
        self._controller.dispose()

    def __enter__(self) -> ActionBinding[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class ActionFactory(Generic[T]):
    """create_action() 的返回值，调用时传入绑定级回调"""

    def __init__(
        self,
        operation: Callable[..., Awaitable[Success[T] | Failure]],
        options: ActionOptions,
    ) -> None:
        self.operation = operation
        self.options = options

    def __call__(
        self,
        *,
        on_success: EnvelopeCallback | None = None,
        on_error: EnvelopeCallback | None = None,
        on_finally: FinallyCallback | None = None,
    ) -> ActionBinding[T]:
        callbacks = ActionCallbacks(on_success=on_success, on_error=on_error, on_finally=on_finally)
        return ActionBinding(self.operation, self.options, callbacks)


def create_action(
    operation: Callable[..., Awaitable[Success[T] | Failure]],
    options: ActionOptions | None = None,
    **overrides: Any,
) -> ActionFactory[T]:
    if options is None:
        options = ActionOptions(**overrides)
    elif overrides:
        options = options.model_copy(update=overrides)
    return ActionFactory(operation, options)


def use_action(
    operation: Callable[..., Awaitable[Success[T] | Failure]],
    *,
    on_success: EnvelopeCallback | None = None,
    on_error: EnvelopeCallback | None = None,
    on_finally: FinallyCallback | None = None,
    **options: Any,
) -> ActionBinding[T]:
    """create_action(operation, ...)(callbacks) 的简写"""
    return create_action(operation, **options)(
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
    )
