"""action_loader - 异步调用编排：取消、重试、限速与按名称共享的结果缓存

使用示例：
>>> from action_loader import LoaderProvider, create_loader, response
>>>
>>> async def fetch_profile(user_id, signal):
...     return response.success({"id": user_id})
>>>
>>> use_profile = create_loader("profile", fetch_profile)
>>>
>>> async with LoaderProvider():
...     loader = use_profile(retry_limit=1)
...     await loader.load("u-1")
...     loader.result
"""

from action_loader.application import (
    ActionBinding,
    ActionCallbacks,
    LoaderBinding,
    LoaderProvider,
    ResetLoader,
    create_action,
    create_loader,
    current_store,
    use_action,
    use_reset_loader,
)
from action_loader.config import ActionOptions, LoaderOptions, Settings, settings
from action_loader.domain.exceptions import (
    ActionLoaderError,
    InvalidStateTransitionError,
    LoaderContextError,
    OperationCancelledError,
)
from action_loader.domain.services import (
    CancellationSignal,
    CancellationToken,
    Debouncer,
    ExecutionController,
    InvocationCallbacks,
    ResetAll,
    ResetEntry,
    SetEntry,
    SharedStateStore,
    StoreActionType,
    Throttler,
    debounce,
    loader_reducer,
    throttle,
)
from action_loader.domain.value_objects import (
    ExecutionState,
    Failure,
    ResponseEnvelope,
    Success,
    response,
    to_envelope,
)

__version__ = "0.1.0"

__all__ = [
    "ActionBinding",
    "ActionCallbacks",
    "ActionLoaderError",
    "ActionOptions",
    "CancellationSignal",
    "CancellationToken",
    "Debouncer",
    "ExecutionController",
    "ExecutionState",
    "Failure",
    "InvalidStateTransitionError",
    "InvocationCallbacks",
    "LoaderBinding",
    "LoaderContextError",
    "LoaderOptions",
    "LoaderProvider",
    "OperationCancelledError",
    "ResetAll",
    "ResetEntry",
    "ResetLoader",
    "ResponseEnvelope",
    "SetEntry",
    "Settings",
    "SharedStateStore",
    "StoreActionType",
    "Success",
    "Throttler",
    "create_action",
    "create_loader",
    "current_store",
    "debounce",
    "loader_reducer",
    "response",
    "settings",
    "throttle",
    "to_envelope",
    "use_action",
    "use_reset_loader",
]
