"""schema_registry ライブラリの例外型定義"""

from __future__ import annotations

from typing import Any

import httpx


class SchemaRegistryError(Exception):
    """schema_registry ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class SchemaRegistryErrorCodes:
    """SchemaRegistryError のエラーコード定数。"""

    TRANSPORT_ERROR: str = "TRANSPORT_ERROR"
    REGISTRY_ERROR: str = "REGISTRY_ERROR"
    SCHEMA_NOT_FOUND: str = "SCHEMA_NOT_FOUND"
    DECODE_ERROR: str = "DECODE_ERROR"
    INVALID_CONFIG: str = "INVALID_CONFIG"
    INVALID_ARGUMENT: str = "INVALID_ARGUMENT"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"


class TransportError(SchemaRegistryError):
    """リトライ上限到達後も残ったネットワークレベルの失敗。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SchemaRegistryErrorCodes.TRANSPORT_ERROR, message, cause)


class RegistryError(SchemaRegistryError):
    """Schema Registry が返したエラーレスポンス。

    error_code と message はレスポンスボディ ``{"error_code": ..., "message": ...}``
    をそのまま保持する。クライアント側で再解釈はしない。
    """

    UNRECOGNIZED_MESSAGE = "Unrecognized error found"

    def __init__(
        self,
        status_code: int,
        error_code: int,
        message: str,
        code: str = SchemaRegistryErrorCodes.REGISTRY_ERROR,
    ) -> None:
        super().__init__(code, message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message

    def __str__(self) -> str:
        return f"{self.error_code} - {self.message}"

    @classmethod
    def from_response(cls, resp: httpx.Response) -> RegistryError:
        """非成功レスポンスから RegistryError を生成する。

        ボディが想定の形でなければ HTTP ステータスコードと汎用メッセージを使う。
        """
        error_code = resp.status_code
        message = cls.UNRECOGNIZED_MESSAGE
        try:
            data: Any = resp.json()
        except ValueError:
            data = None
        if (
            isinstance(data, dict)
            and isinstance(data.get("error_code"), int)
            and isinstance(data.get("message"), str)
        ):
            error_code = data["error_code"]
            message = data["message"]
        if resp.status_code == 404:
            return SchemaNotFoundError(resp.status_code, error_code, message)
        return cls(resp.status_code, error_code, message)


class SchemaNotFoundError(RegistryError):
    """HTTP 404 のレジストリエラー（subject / version / id が存在しない）。"""

    def __init__(self, status_code: int, error_code: int, message: str) -> None:
        super().__init__(
            status_code,
            error_code,
            message,
            code=SchemaRegistryErrorCodes.SCHEMA_NOT_FOUND,
        )


class DecodeError(SchemaRegistryError):
    """レスポンスボディまたはスキーマテキストを解釈できなかった。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(SchemaRegistryErrorCodes.DECODE_ERROR, message, cause)
