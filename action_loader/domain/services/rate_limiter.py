"""速率限制器 (RateLimiter) - debounce / throttle

业务定义：
- Debouncer: 纯尾沿防抖，每次调用都取消上一次定时并以最新参数重新定时
- Throttler: 首沿立即执行，窗口内的调用合并为一次尾沿调用（最新参数）
- 两者都是 fire-and-forget：不把内部结果返回给调用方

设计原则：
- 总是调用最新的 callback（可通过 .callback 属性替换）
- 延迟 <= 0、NaN、inf 或非数字时立即执行，不经过定时器
- 定时器一次性触发，新定时器调度前总是先取消旧的，避免重复触发
- callback 返回 awaitable 时包装成后台 Task，异常记录日志，不向外抛出

使用示例：
    debounced = debounce(binding.load, 300)
    debounced("query")          # 300ms 内再次调用会重置定时器

    throttled = throttle(binding.execute, 200)
    throttled(1)                # 立即执行
    throttled(2)                # 窗口内，安排尾沿调用
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from inspect import isawaitable
from numbers import Real
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[..., Any]
Clock = Callable[[], float]


def fires_immediately(delay_ms: Any) -> bool:
    """延迟无效或非正数时立即执行"""
    if isinstance(delay_ms, bool) or not isinstance(delay_ms, Real):
        return True
    return not math.isfinite(delay_ms) or delay_ms <= 0


class _ScheduledDispatcher:
    """Debouncer/Throttler 共享的定时与分发逻辑"""

    def __init__(self, callback: Callback, delay_ms: float) -> None:
        self._callback = callback
        self._delay_ms = delay_ms
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def callback(self) -> Callback:
        return self._callback

    @callback.setter
    def callback(self, callback: Callback) -> None:
        self._callback = callback

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        """是否有尚未触发的定时调用"""
        return self._handle is not None

    @property
    def running_tasks(self) -> int:
        return len(self._tasks)

    def cancel(self) -> bool:
        """丢弃尚未触发的调用"""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _schedule(self, delay_ms: float, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay_ms / 1000, self._fire, args, kwargs)
        logger.debug(f"{type(self).__name__} scheduled call in {delay_ms:.1f}ms")

    def _fire(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._handle = None
        self._dispatch(args, kwargs)

    def _dispatch(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        try:
            result = self._callback(*args, **kwargs)
        except Exception:
            logger.exception(f"{type(self).__name__} callback failed")
            return

        if isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"{type(self).__name__} background call failed: {exc}",
                exc_info=exc,
            )


class Debouncer(_ScheduledDispatcher):
    """尾沿防抖包装器"""

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if fires_immediately(self._delay_ms):
            self.cancel()
            self._dispatch(args, kwargs)
            return
        self._schedule(self._delay_ms, args, kwargs)


class Throttler(_ScheduledDispatcher):
    """首沿 + 尾沿节流包装器

    last_run 记录最近一次真正触发的时间（毫秒）。窗口内的调用只保留
    最新的一次，在窗口结束时触发，触发时刷新 last_run。
    """

    def __init__(self, callback: Callback, delay_ms: float, *, clock: Clock | None = None) -> None:
        super().__init__(callback, delay_ms)
        self._clock = clock
        self._last_run_ms: float | None = None

    @property
    def last_run_ms(self) -> float | None:
        return self._last_run_ms

    def _now_ms(self) -> float:
        if self._clock is not None:
            return self._clock() * 1000
        return asyncio.get_running_loop().time() * 1000

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if fires_immediately(self._delay_ms):
            self.cancel()
            self._dispatch(args, kwargs)
            return

        now = self._now_ms()
        if self._last_run_ms is None or now - self._last_run_ms >= self._delay_ms:
            self.cancel()
            self._last_run_ms = now
            self._dispatch(args, kwargs)
            return

        remaining = self._delay_ms - (now - self._last_run_ms)
        self._schedule(remaining, args, kwargs)

    def _fire(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._handle = None
        self._last_run_ms = self._now_ms()
        self._dispatch(args, kwargs)


def debounce(callback: Callback, delay_ms: float) -> Debouncer:
    return Debouncer(callback, delay_ms)


def throttle(callback: Callback, delay_ms: float, *, clock: Clock | None = None) -> Throttler:
    return Throttler(callback, delay_ms, clock=clock)
