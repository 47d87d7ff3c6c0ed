"""Pytest 配置文件 - 全局 fixtures"""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from action_loader import SharedStateStore
from action_loader.domain.services.cancellation import CancellationSignal


@pytest.fixture
def store() -> SharedStateStore:
    """空的共享存储"""
    return SharedStateStore()


class GatedOperation:
    """按调用顺序返回预设结果的操作替身

    每次调用都会等待对应的 gate，测试用 release(i) 控制第 i 次调用何时完成。
    操作忽略取消信号，用来验证控制器自己丢弃过期结果。
    """

    def __init__(self, results: list[Any]) -> None:
        self.results = results
        self.gates = [asyncio.Event() for _ in results]
        self.calls: list[tuple[Any, ...]] = []
        self.signals: list[CancellationSignal] = []

    async def __call__(self, *args: Any) -> Any:
        *params, signal = args
        index = len(self.calls)
        self.calls.append(tuple(params))
        self.signals.append(signal)
        await self.gates[index].wait()
        return self.results[index]

    def release(self, index: int) -> None:
        self.gates[index].set()


@pytest.fixture
def gated_operation() -> Callable[[list[Any]], GatedOperation]:
    return GatedOperation
