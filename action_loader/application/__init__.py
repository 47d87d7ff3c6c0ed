"""应用层 - Loader / Action 绑定与组合根

Application 层职责：
1. LoaderProvider: 组合根，持有进程级 SharedStateStore
2. LoaderBinding: 单飞、按名称缓存的加载器（create_loader）
3. ActionBinding: 每次调用都执行的动作（create_action / use_action）
4. ResetLoader: 清空缓存条目（use_reset_loader）
"""

from action_loader.application.action_binding import (
    ActionBinding,
    ActionCallbacks,
    ActionFactory,
    create_action,
    use_action,
)
from action_loader.application.loader_binding import LoaderBinding, LoaderFactory, create_loader
from action_loader.application.loader_provider import (
    LoaderProvider,
    ResetLoader,
    current_store,
    use_reset_loader,
)

__all__ = [
    "ActionBinding",
    "ActionCallbacks",
    "ActionFactory",
    "LoaderBinding",
    "LoaderFactory",
    "LoaderProvider",
    "ResetLoader",
    "create_action",
    "create_loader",
    "current_store",
    "use_action",
    "use_reset_loader",
]
