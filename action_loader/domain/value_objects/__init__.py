"""Domain 值对象

导出所有领域值对象，方便其他模块导入
"""

from action_loader.domain.value_objects.execution_state import ExecutionState
from action_loader.domain.value_objects.response_envelope import (
    Failure,
    ResponseEnvelope,
    Success,
    response,
    to_envelope,
)

__all__ = [
    "ExecutionState",
    "Failure",
    "ResponseEnvelope",
    "Success",
    "response",
    "to_envelope",
]
