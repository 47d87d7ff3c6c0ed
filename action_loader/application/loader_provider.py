"""LoaderProvider - 组合根，持有进程级 SharedStateStore

职责：
    在应用启动处创建唯一的 SharedStateStore，并通过 contextvars 让它在
    作用域内成为"当前 store"。Loader 和 reset 工具优先使用显式传入的
    store，其次才查找当前 Provider；两者都没有时抛出 LoaderContextError。

使用示例：
    async with LoaderProvider() as provider:
        use_profile = create_loader("profile", fetch_profile)
        loader = use_profile()              # 使用 provider.store
        await loader.load("u-1")

        use_reset_loader().reset("profile")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextvars import ContextVar, Token
from dataclasses import dataclass

from action_loader.domain.exceptions import LoaderContextError
from action_loader.domain.services.shared_state_store import SharedStateStore

logger = logging.getLogger(__name__)

_current_store: ContextVar[SharedStateStore | None] = ContextVar(
    "action_loader_current_store", default=None
)


class LoaderProvider:
    """同步/异步上下文管理器，嵌套时内层遮蔽外层"""

    def __init__(self, store: SharedStateStore | None = None) -> None:
        self.store = store if store is not None else SharedStateStore()
        self._tokens: list[Token[SharedStateStore | None]] = []

    def __enter__(self) -> LoaderProvider:
        self._tokens.append(_current_store.set(self.store))
        logger.debug("LoaderProvider entered")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        _current_store.reset(self._tokens.pop())
        logger.debug("LoaderProvider exited")

    async def __aenter__(self) -> LoaderProvider:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.__exit__(exc_type, exc, tb)


def current_store() -> SharedStateStore | None:
    """当前作用域内的 store（没有 Provider 时为 None）"""
    return _current_store.get()


def resolve_store(store: SharedStateStore | None, caller: str) -> SharedStateStore:
    if store is not None:
        return store
    active = _current_store.get()
    if active is None:
        raise LoaderContextError(caller)
    return active


@dataclass(frozen=True)
class ResetLoader:
    """清空缓存条目的句柄"""

    reset: Callable[[str], None]
    reset_all: Callable[[], None]


def use_reset_loader(store: SharedStateStore | None = None) -> ResetLoader:
    resolved = resolve_store(store, "use_reset_loader")
    return ResetLoader(reset=resolved.reset, reset_all=resolved.reset_all)
