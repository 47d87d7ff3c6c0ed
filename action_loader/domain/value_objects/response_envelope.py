"""
响应信封 (ResponseEnvelope) Pydantic Schema 定义

每个被包装的异步操作都必须返回这两种形状之一：
- Success: ok=True, data, message?
- Failure: ok=False, message, detail?

用法：
    from action_loader.domain.value_objects.response_envelope import response

    async def fetch_profile(user_id: str, signal) -> ResponseEnvelope:
        if not user_id:
            return response.error("user_id is required")
        return response.success({"id": user_id})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter

T = TypeVar("T")


class Success(BaseModel, Generic[T]):
    """成功结果，只有它携带 data"""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    data: T
    message: str | None = None


class Failure(BaseModel):
    """失败结果

    业务失败由操作直接返回；重试耗尽时由控制器通过 from_exception() 合成。
    """

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    message: str
    detail: str | None = None

    @classmethod
    def from_exception(cls, exception: BaseException) -> Failure:
        """从异常创建失败结果（消息为空时退回到异常类名）"""
        message = str(exception) or type(exception).__name__
        return cls(message=message)


ResponseEnvelope = Success[Any] | Failure

_envelope_adapter: TypeAdapter[Success[Any] | Failure] = TypeAdapter(ResponseEnvelope)


def to_envelope(value: Any) -> Success[Any] | Failure:
    """把操作的返回值规范化为信封

    已经是 Success/Failure 的实例原样返回；Mapping 走 Pydantic 校验。
    校验失败时抛出 pydantic.ValidationError。
    """
    if isinstance(value, (Success, Failure)):
        return value
    if isinstance(value, Mapping):
        return _envelope_adapter.validate_python(dict(value))
    return _envelope_adapter.validate_python(value)


class _ResponseFactory:
    """信封构造器，对应 response.success / response.error"""

    @staticmethod
    def success(data: T, message: str | None = None) -> Success[T]:
        return Success(data=data, message=message)

    @staticmethod
    def error(message: str, detail: str | None = None) -> Failure:
        return Failure(message=message, detail=detail)


response = _ResponseFactory()
