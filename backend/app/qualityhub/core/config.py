"""QualityHub - Settings

所有配置都可以通过 QH_ 前缀的环境变量或 .env 文件覆盖，例如 QH_DB_URL。
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QH_", env_file=".env", extra="ignore")

    ENV: str = Field(default="dev")

    # 数据库
    DB_URL: str = Field(default="sqlite:///./qualityhub.db")
    DB_ECHO: bool = Field(default=False)

    # 日志，LOG_DIR 为空时只输出到控制台
    LOG_DIR: str = Field(default="./logs")
    LOG_LEVEL: str = Field(default="INFO")

    # JWT
    JWT_SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRE_HOURS: int = Field(default=24)

    # 组织
    ORGANIZATIONS_ANYONE_CAN_CREATE: bool = Field(default=False)
    DEFAULT_GROUP: str = Field(default="qualityhub-users")


settings = Settings()
