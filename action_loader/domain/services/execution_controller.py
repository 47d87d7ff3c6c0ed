"""执行控制器 (ExecutionController) - 单次调用的取消/重试/状态机

业务定义：
- 驱动一个用户提供的异步操作完成一次逻辑调用
- 每个控制器同一时刻最多只有一个存活的调用：新调用开始前先取消旧调用
- 非取消异常按配置重试（retry_limit 表示首次之后的额外尝试次数）
- 重试耗尽后把异常合成为 Failure 信封，按失败路径投递
- 取消是良性的：不重试、不触发 on_error、状态回到 IDLE

并发模型：
- 单事件循环协作式调度，控制器自身从不阻塞
- 取消只是信号，被包装的操作自行决定是否停止
- 过期结果一律丢弃：写状态/投递回调前检查 token 是否仍是当前 token，
  即使操作忽略了取消信号也成立

使用示例：
    async def fetch(user_id, signal):
        return response.success({"id": user_id})

    controller = ExecutionController(
        fetch,
        retry_limit=2,
        retry_delay_ms=100,
        callbacks=InvocationCallbacks(on_success=print),
    )
    envelope = await controller.invoke("u-1")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from inspect import isawaitable
from typing import Any, Generic, TypeVar

from action_loader.domain.exceptions import (
    InvalidStateTransitionError,
    OperationCancelledError,
)
from action_loader.domain.services.cancellation import CancellationToken
from action_loader.domain.value_objects.execution_state import ExecutionState
from action_loader.domain.value_objects.response_envelope import (
    Failure,
    Success,
    to_envelope,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Envelope = Success[Any] | Failure
EnvelopeCallback = Callable[[Envelope], Any]
FinallyCallback = Callable[[], Any]
StateListener = Callable[[ExecutionState, bool], None]


def _caller_cancelling() -> bool:
    """当前 Task 自身是否正在被取消（asyncio.timeout / TaskGroup / task.cancel）"""
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


@dataclass(frozen=True)
class InvocationCallbacks:
    """结果投递回调

    on_success: envelope.ok 为 True 时调用
    on_error: envelope.ok 为 False（业务失败或重试耗尽）时调用
    on_finally: 每次调用结束都会调用，包括取消和过期
    回调可以是普通函数，也可以是协程函数。
    """

    on_success: EnvelopeCallback | None = None
    on_error: EnvelopeCallback | None = None
    on_finally: FinallyCallback | None = None


@dataclass
class ControllerStats:
    """控制器统计信息"""

    invocations: int = 0
    attempts: int = 0
    retries: int = 0
    cancellations: int = 0
    stale_results: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "invocations": self.invocations,
            "attempts": self.attempts,
            "retries": self.retries,
            "cancellations": self.cancellations,
            "stale_results": self.stale_results,
        }


class ExecutionController(Generic[T]):
    """单飞调用控制器

    职责：
    1. 分配 CancellationToken，调用操作时把只读 signal 追加为最后一个参数
    2. 失败重试（同一个 token，同一个取消作用域）
    3. 维护 ExecutionState 并通知订阅者
    4. 丢弃过期结果
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[Success[T] | Failure]],
        *,
        retry_limit: int = 0,
        retry_delay_ms: float = 0,
        callbacks: InvocationCallbacks | None = None,
        name: str | None = None,
    ) -> None:
        if retry_limit < 0:
            raise ValueError("retry_limit must be non-negative")
        if retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be non-negative")

        self._operation = operation
        self._retry_limit = retry_limit
        self._retry_delay_ms = retry_delay_ms
        self._callbacks = callbacks or InvocationCallbacks()
        self._name = name or getattr(operation, "__name__", "operation")

        self._state = ExecutionState.IDLE
        self._token: CancellationToken | None = None
        self._disposed = False
        self._listeners: list[StateListener] = []
        self._stats = ControllerStats()

    # ------------------------------------------------------------------
    # 只读属性
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._token is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def stats(self) -> ControllerStats:
        return self._stats

    # ------------------------------------------------------------------
    # 订阅
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """订阅 (state, is_running) 变化，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def cancel(self, reason: str = "cancelled") -> bool:
        """取消当前调用；没有存活调用时返回 False"""
        token = self._token
        if token is None:
            return False

        self._token = None
        token.cancel(reason)
        self._stats.cancellations += 1
        logger.info(f"[{self._name}] invocation cancelled: {reason}")
        if self._state is ExecutionState.LOADING:
            self._transition(ExecutionState.IDLE)
        else:
            self._notify()
        return True

    def dispose(self) -> None:
        """取消存活调用并停止一切后续状态更新"""
        if self._disposed:
            return
        self.cancel("disposed")
        self._disposed = True
        self._listeners.clear()

    # ------------------------------------------------------------------
    # 调用
    # ------------------------------------------------------------------

    async def invoke(
        self,
        *args: Any,
        callbacks: InvocationCallbacks | None = None,
    ) -> Envelope | None:
        """执行一次逻辑调用

        返回最终投递的信封；被取消或结果过期时返回 None。
        """
        if self._disposed:
            logger.warning(f"[{self._name}] invoke() on a disposed controller ignored")
            return None

        self.cancel("superseded")

        token = CancellationToken()
        self._token = token
        self._stats.invocations += 1
        self._transition(ExecutionState.LOADING)
        logger.debug(f"[{self._name}] invocation #{self._stats.invocations} started")

        envelope: Envelope | None = None
        try:
            outcome = await self._run_attempts(token, args)
            if outcome is not None:
                envelope, final_state = outcome
                # 先清除在途标记，回调里可以安全地发起下一次调用
                self._token = None
                self._transition(final_state)
                handler = "on_success" if envelope.ok else "on_error"
                await self._run_callbacks(handler, callbacks, envelope)
        finally:
            if self._token is token:
                self._token = None
                self._notify()
            await self._run_callbacks("on_finally", callbacks)

        return envelope

    async def _run_attempts(
        self,
        token: CancellationToken,
        args: tuple[Any, ...],
    ) -> tuple[Envelope, ExecutionState] | None:
        retries = 0
        while True:
            self._stats.attempts += 1
            try:
                raw = await self._operation(*args, token.signal)
                envelope = to_envelope(raw)
            except OperationCancelledError:
                self._abandon(token, "operation reported cancellation")
                return None
            except asyncio.CancelledError:
                if token.cancelled and not _caller_cancelling():
                    return None
                self._abandon(token, "caller task cancelled")
                raise
            except Exception as e:
                if not self._is_current(token):
                    self._discard_stale()
                    return None

                if retries < self._retry_limit:
                    retries += 1
                    self._stats.retries += 1
                    logger.warning(
                        f"[{self._name}] attempt {retries} failed, retrying "
                        f"({retries}/{self._retry_limit}): {e}"
                    )
                    try:
                        if await self._wait_retry_delay(token):
                            return None
                    except asyncio.CancelledError:
                        self._abandon(token, "caller task cancelled")
                        raise
                    continue

                logger.error(
                    f"[{self._name}] retries exhausted after {retries + 1} attempt(s): {e}"
                )
                return Failure.from_exception(e), ExecutionState.ERROR

            if not self._is_current(token):
                self._discard_stale()
                return None
            return envelope, ExecutionState.SUCCESS

    async def _wait_retry_delay(self, token: CancellationToken) -> bool:
        """等待重试间隔；期间被取消返回 True"""
        if self._retry_delay_ms > 0:
            return await token.signal.wait(self._retry_delay_ms / 1000)
        await asyncio.sleep(0)
        return token.cancelled

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------

    def _is_current(self, token: CancellationToken) -> bool:
        return self._token is token and not token.cancelled

    def _abandon(self, token: CancellationToken, reason: str) -> None:
        if self._token is token:
            self.cancel(reason)

    def _discard_stale(self) -> None:
        self._stats.stale_results += 1
        logger.debug(f"[{self._name}] discarding stale result")

    def _transition(self, target: ExecutionState) -> None:
        if self._disposed:
            return
        if not self._state.can_transition_to(target):
            raise InvalidStateTransitionError(self._state, target)
        self._state = target
        self._notify()

    def _notify(self) -> None:
        if self._disposed:
            return
        for listener in list(self._listeners):
            try:
                listener(self._state, self.is_running)
            except Exception:
                logger.exception(f"[{self._name}] state listener failed")

    async def _run_callbacks(
        self,
        handler: str,
        callbacks: InvocationCallbacks | None,
        *args: Any,
    ) -> None:
        # 绑定级回调先于单次调用回调
        for source in (self._callbacks, callbacks):
            if source is None:
                continue
            callback = getattr(source, handler)
            if callback is None:
                continue
            try:
                result = callback(*args)
                if isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"[{self._name}] {handler} callback failed")
