"""ExecutionState 枚举 - 单次调用的生命周期状态

业务定义：
- 状态流转：IDLE/SUCCESS/ERROR → LOADING → (SUCCESS | ERROR | IDLE)
- LOADING → SUCCESS：操作返回了 envelope（包括 ok=False 的业务失败）
- LOADING → ERROR：操作抛出非取消异常且重试耗尽
- LOADING → IDLE：调用被取消

设计原则：
- 继承 str：序列化友好
- 通过 can_transition_to() 固化状态机不变式
"""

from __future__ import annotations

from enum import Enum


class ExecutionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"

    def can_transition_to(self, target: ExecutionState) -> bool:
        allowed: dict[ExecutionState, set[ExecutionState]] = {
            ExecutionState.IDLE: {ExecutionState.LOADING},
            ExecutionState.LOADING: {
                ExecutionState.SUCCESS,
                ExecutionState.ERROR,
                ExecutionState.IDLE,
            },
            ExecutionState.SUCCESS: {ExecutionState.LOADING},
            ExecutionState.ERROR: {ExecutionState.LOADING},
        }
        return target in allowed[self]

    def is_terminal(self) -> bool:
        return self in {ExecutionState.SUCCESS, ExecutionState.ERROR}
