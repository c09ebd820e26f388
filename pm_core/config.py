"""
PawMart Configuration Management
遵循约束：环境变量前缀 PM__
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """全局配置类"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PM__",
        case_sensitive=False
    )

    # Database
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_name: str = Field(default="pawmart")
    db_user: str = Field(default="pawmart")
    db_password: str = Field(default="")
    db_pool_size: int = Field(default=20)
    db_max_overflow: int = Field(default=40)
    # 完整连接串（设置后覆盖上面的分项配置，测试中用于 SQLite）
    db_url: Optional[str] = Field(default=None)

    # API Settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_prefix: str = Field(default="/api/pm/v1")
    api_title: str = Field(default="PawMart Catalog API")
    api_version: str = Field(default="1.0.0")
    api_debug: bool = Field(default=False)
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    # Security
    secret_key: str = Field(default="change-me-in-production")
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)

    # Monitoring
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or text

    # Cloudinary 图片存储
    cloudinary_cloud_name: Optional[str] = Field(default=None)
    cloudinary_api_key: Optional[str] = Field(default=None)
    cloudinary_api_secret: Optional[str] = Field(default=None)
    product_images_folder: str = Field(default="products")

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v):
        """确保 API 前缀符合规范"""
        if not v.startswith("/api/pm/"):
            raise ValueError("API prefix must start with /api/pm/")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @property
    def database_url(self) -> str:
        """构建数据库连接字符串"""
        if self.db_url:
            return self.db_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def sync_database_url(self) -> str:
        """构建同步数据库连接字符串（用于 Alembic）"""
        if self.db_url:
            return self.db_url.replace("+asyncpg", "").replace("+aiosqlite", "")
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
