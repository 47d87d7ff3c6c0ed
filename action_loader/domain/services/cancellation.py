"""取消令牌 (CancellationToken) - 单次调用的取消作用域

业务定义：
- 每次 ExecutionController 调用独占一个 CancellationToken
- 被包装的操作只拿到只读的 CancellationSignal 视图

设计原则：
- 协作式取消：操作自行决定是否以及多快响应
- 响应方式：轮询 signal.cancelled、调用 raise_if_cancelled()、
  await signal.wait() 或注册回调
- 取消只生效一次，回调逐个隔离异常
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from action_loader.domain.exceptions import OperationCancelledError

logger = logging.getLogger(__name__)

CancelCallback = Callable[[str | None], None]


class CancellationToken:
    """持有方：控制一次调用的生命周期"""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._event = asyncio.Event()
        self._callbacks: list[CancelCallback] = []
        self._signal = CancellationSignal(self)

    @property
    def signal(self) -> CancellationSignal:
        return self._signal

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """取消令牌；已取消时返回 False"""
        if self._cancelled:
            return False

        self._cancelled = True
        self._reason = reason
        self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                logger.exception("cancellation callback failed")
        return True


class CancellationSignal:
    """交给被包装操作的只读视图"""

    __slots__ = ("_token",)

    def __init__(self, token: CancellationToken) -> None:
        self._token = token

    @property
    def cancelled(self) -> bool:
        return self._token._cancelled

    @property
    def reason(self) -> str | None:
        return self._token._reason

    def raise_if_cancelled(self) -> None:
        if self._token._cancelled:
            raise OperationCancelledError(self._token._reason)

    async def wait(self, timeout: float | None = None) -> bool:
        """等待取消或 timeout 秒超时

        返回 True 表示信号已触发，超时返回 False。
        """
        if self._token._cancelled:
            return True
        try:
            await asyncio.wait_for(self._token._event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    def add_callback(self, callback: CancelCallback) -> None:
        """注册取消回调；已取消时立即执行"""
        if self._token._cancelled:
            callback(self._token._reason)
            return
        self._token._callbacks.append(callback)

    def __repr__(self) -> str:
        return f"CancellationSignal(cancelled={self.cancelled})"
