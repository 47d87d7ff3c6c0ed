"""领域层异常定义

异常分层：
- OperationCancelledError: 调用被取代或被显式取消（良性，控制器内部吞掉）
- LoaderContextError: 在组合根之外使用 Loader（编程错误，直接抛出）
- InvalidStateTransitionError: ExecutionState 非法流转（内部不变式）

业务失败（Failure envelope）不是异常，不在这里定义。
"""

from __future__ import annotations


class ActionLoaderError(Exception):
    """action_loader 异常基类"""

    pass


class OperationCancelledError(ActionLoaderError):
    """调用已取消

    被包装的操作在观察到取消信号后应抛出此异常（或直接返回）。
    控制器识别该异常：不重试、不触发 on_error、状态回到 IDLE。
    """

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(reason or "operation cancelled")


class LoaderContextError(ActionLoaderError):
    """Loader 缺少 SharedStateStore

    用法错误：既没有显式传入 store，也不在 LoaderProvider 作用域内。
    """

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"{caller} must be used within a LoaderProvider or given a store")


class InvalidStateTransitionError(ActionLoaderError):
    """ExecutionState 非法流转"""

    def __init__(self, current: object, target: object):
        self.current = current
        self.target = target
        super().__init__(f"invalid state transition: {current} -> {target}")
