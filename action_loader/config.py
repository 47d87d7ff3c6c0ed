"""配置模块 - 使用 Pydantic Settings 管理默认选项"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """全局默认配置

    每个 Loader/Action 未显式给出的选项都从这里取默认值。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Retry
    retry_limit: int = Field(default=0, ge=0, description="首次失败后的额外尝试次数")
    retry_delay_ms: float = Field(default=0, ge=0, description="重试间隔（毫秒）")

    # Rate limiting
    debounce_ms: float = Field(default=0, description="防抖延迟（毫秒），<=0 表示禁用")
    throttle_ms: float = Field(default=200, description="节流窗口（毫秒），<=0 表示禁用")


# 全局配置实例
settings = Settings()


class ActionOptions(BaseModel):
    """Action 绑定选项"""

    model_config = ConfigDict(extra="forbid")

    debounce_ms: float = Field(default_factory=lambda: settings.debounce_ms)
    throttle_ms: float = Field(default_factory=lambda: settings.throttle_ms)


class LoaderOptions(ActionOptions):
    """Loader 绑定选项"""

    retry_limit: int = Field(default_factory=lambda: settings.retry_limit, ge=0)
    retry_delay_ms: float = Field(default_factory=lambda: settings.retry_delay_ms, ge=0)
