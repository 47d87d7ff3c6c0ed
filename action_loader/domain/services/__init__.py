"""Domain Services 模块

领域服务：
- ExecutionController: 单飞调用控制器（取消、重试、状态机）
- Debouncer / Throttler: 速率限制包装器
- SharedStateStore: 按名称缓存结果的共享存储
- CancellationToken / CancellationSignal: 协作式取消原语
"""

from action_loader.domain.services.cancellation import CancellationSignal, CancellationToken
from action_loader.domain.services.execution_controller import (
    ControllerStats,
    ExecutionController,
    InvocationCallbacks,
)
from action_loader.domain.services.rate_limiter import Debouncer, Throttler, debounce, throttle
from action_loader.domain.services.shared_state_store import (
    ResetAll,
    ResetEntry,
    SetEntry,
    SharedStateStore,
    StoreActionType,
    loader_reducer,
)

__all__ = [
    "CancellationSignal",
    "CancellationToken",
    "ControllerStats",
    "Debouncer",
    "ExecutionController",
    "InvocationCallbacks",
    "ResetAll",
    "ResetEntry",
    "SetEntry",
    "SharedStateStore",
    "StoreActionType",
    "Throttler",
    "debounce",
    "loader_reducer",
    "throttle",
]
