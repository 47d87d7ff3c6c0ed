"""共享状态存储 (SharedStateStore) - 按名称缓存 Loader 结果

业务定义：
- 进程级唯一的 name -> ResponseEnvelope 映射
- 只能通过三种 action 修改：SetEntry / ResetEntry / ResetAll
- reducer 是纯函数，每次修改都产生新的只读快照，读者永远看不到半更新的状态

设计原则：
- 单一事件循环内同步修改与读取，没有跨线程可见性问题
- 不校验 key：key 冲突由调用方负责
- 订阅者异常隔离：单个订阅者报错不影响其他订阅者

使用示例：
    store = SharedStateStore()
    store.subscribe(lambda state: print(dict(state)))

    store.set_entry("profile", response.success({"id": 1}))
    store.get("profile")        # Success(...)
    store.reset("profile")
    store.get("profile")        # None
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from action_loader.domain.value_objects.response_envelope import Failure, Success

logger = logging.getLogger(__name__)

Envelope = Success[Any] | Failure
LoaderState = Mapping[str, Envelope]
StateListener = Callable[[LoaderState], None]

EMPTY_STATE: LoaderState = MappingProxyType({})


class StoreActionType(str, Enum):
    SET_ENTRY = "SET_ENTRY"
    RESET = "RESET"
    RESET_ALL = "RESET_ALL"


@dataclass(frozen=True, slots=True)
class SetEntry:
    name: str
    envelope: Envelope
    type: StoreActionType = StoreActionType.SET_ENTRY


@dataclass(frozen=True, slots=True)
class ResetEntry:
    name: str
    type: StoreActionType = StoreActionType.RESET


@dataclass(frozen=True, slots=True)
class ResetAll:
    type: StoreActionType = StoreActionType.RESET_ALL


StoreAction = SetEntry | ResetEntry | ResetAll


def loader_reducer(state: LoaderState, action: StoreAction) -> LoaderState:
    """纯函数 reducer：返回新快照，不修改传入的 state"""
    match action:
        case SetEntry(name=name, envelope=envelope):
            return MappingProxyType({**state, name: envelope})
        case ResetEntry(name=name):
            return MappingProxyType({key: value for key, value in state.items() if key != name})
        case ResetAll():
            return EMPTY_STATE
        case _:
            return MappingProxyType(dict(state))


class SharedStateStore:
    """按名称缓存结果的共享存储

    职责：
    1. 持有当前快照
    2. 通过 dispatch() 应用 action
    3. 修改后通知订阅者
    """

    def __init__(self, initial_state: Mapping[str, Envelope] | None = None) -> None:
        self._state: LoaderState = MappingProxyType(dict(initial_state or {}))
        self._listeners: list[StateListener] = []
        self._dispatch_count = 0

    @property
    def state(self) -> LoaderState:
        """当前快照（只读）"""
        return self._state

    @property
    def dispatch_count(self) -> int:
        return self._dispatch_count

    def get(self, name: str) -> Envelope | None:
        return self._state.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._state

    def __len__(self) -> int:
        return len(self._state)

    def dispatch(self, action: StoreAction) -> LoaderState:
        self._state = loader_reducer(self._state, action)
        self._dispatch_count += 1
        logger.debug(f"store dispatch: {action.type.value}, keys={len(self._state)}")
        self._notify()
        return self._state

    # Slice helpers (setLoader / reset / resetAll)

    def set_entry(self, name: str, envelope: Envelope) -> None:
        self.dispatch(SetEntry(name=name, envelope=envelope))

    def reset(self, name: str) -> None:
        if name not in self._state:
            return
        logger.info(f"store reset: {name}")
        self.dispatch(ResetEntry(name=name))

    def reset_all(self) -> None:
        logger.info(f"store reset_all: {len(self._state)} entries cleared")
        self.dispatch(ResetAll())

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """订阅快照变化，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("store listener failed")
