"""Schema Registry データモデル"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .exceptions import SchemaRegistryError, SchemaRegistryErrorCodes

CONTENT_TYPE = "application/vnd.schemaregistry.v1+json"
LATEST_VERSION = "latest"


@dataclass(frozen=True)
class SchemaVersion:
    """subject の 1 バージョン分のスキーマ情報。"""

    subject: str
    version: int
    schema: str
    id: int


@dataclass(frozen=True)
class SchemaRegistryConfig:
    """Schema Registry 接続設定。

    endpoints: レジストリのレプリカのベース URL（1 件以上）
    retries: 5xx / ネットワークエラー時の再試行回数。0 は再試行なし。
    timeout_seconds: 1 回の HTTP 試行のタイムアウト
    call_timeout_seconds: 再試行を含む 1 回の呼び出し全体の期限（任意）
    retry_backoff_seconds: 再試行間の待機の基準値。0 は即時再試行。
    max_backoff_seconds: 再試行間の待機の上限
    """

    endpoints: Sequence[str]
    retries: int = 0
    username: str = ""
    password: str = ""
    timeout_seconds: float = 10.0
    call_timeout_seconds: float | None = None
    retry_backoff_seconds: float = 0.0
    max_backoff_seconds: float = 5.0

    def __post_init__(self) -> None:
        if isinstance(self.endpoints, str):
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message="endpoints must be a sequence of URLs, not a string",
            )
        endpoints = tuple(url.rstrip("/") for url in self.endpoints)
        if not endpoints or any(not url for url in endpoints):
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message="at least one non-empty endpoint is required",
            )
        if self.retries < 0:
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message=f"retries must be >= 0, got {self.retries}",
            )
        if self.timeout_seconds <= 0:
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message=f"timeout_seconds must be > 0, got {self.timeout_seconds}",
            )
        if self.call_timeout_seconds is not None and self.call_timeout_seconds <= 0:
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message=f"call_timeout_seconds must be > 0, got {self.call_timeout_seconds}",
            )
        if self.retry_backoff_seconds < 0:
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message=f"retry_backoff_seconds must be >= 0, got {self.retry_backoff_seconds}",
            )
        if self.max_backoff_seconds < 0:
            raise SchemaRegistryError(
                code=SchemaRegistryErrorCodes.INVALID_CONFIG,
                message=f"max_backoff_seconds must be >= 0, got {self.max_backoff_seconds}",
            )
        object.__setattr__(self, "endpoints", endpoints)

    @property
    def auth(self) -> tuple[str, str] | None:
        """username / password が両方あれば basic 認証のタプルを返す。"""
        if self.username and self.password:
            return (self.username, self.password)
        return None
