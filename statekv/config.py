"""環境変数からのアプリケーション設定。"""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """アプリケーション設定。

    環境変数（大文字小文字を区別しない）と作業ディレクトリの .env を読む。
    環境変数が .env より優先される。
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    app_host: str = "0.0.0.0"
    app_port: int = 8080
    statestore_name: str = "statestore"
    log_level: LogLevel = "INFO"

    # サイドカー。DAPR_GRPC_PORT が未設定ならサイドカーなしとみなす
    dapr_grpc_port: int | None = None
    dapr_http_port: int = 3500
    sidecar_host: str = "127.0.0.1"

    # 起動時ヘルスプローブ（秒）
    probe_deadline_s: float = 15.0
    probe_interval_s: float = 0.5
    probe_attempt_timeout_s: float = 2.0

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def sidecar_expected(self) -> bool:
        """サイドカーの存在が期待されているか。"""
        return self.dapr_grpc_port is not None

    @property
    def sidecar_health_url(self) -> str:
        return f"http://{self.sidecar_host}:{self.dapr_http_port}/v1.0/healthz/outbound"

    @property
    def sidecar_grpc_address(self) -> str:
        return f"{self.sidecar_host}:{self.dapr_grpc_port}"
