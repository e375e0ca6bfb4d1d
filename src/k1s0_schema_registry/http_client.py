"""Schema Registry HTTP クライアント実装"""

from __future__ import annotations

import asyncio
import json
import random
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from .client import SchemaRegistryClient, Version
from .codec import Codec, schema_text
from .exceptions import (
    DecodeError,
    RegistryError,
    SchemaRegistryError,
    SchemaRegistryErrorCodes,
    TransportError,
)
from .models import CONTENT_TYPE, LATEST_VERSION, SchemaRegistryConfig, SchemaVersion

logger = structlog.stdlib.get_logger(__name__)

_HEADERS = {"Content-Type": CONTENT_TYPE, "Accept": CONTENT_TYPE}

# 試行タイムアウトの下限（期限切れ直前でも httpx に正の値を渡す）
_MIN_ATTEMPT_TIMEOUT = 0.001


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 400


def _is_retriable(status_code: int) -> bool:
    return 500 <= status_code < 600


@dataclass(frozen=True)
class _Request:
    method: str
    path: str
    body: dict[str, Any] | None = None

    def content(self) -> bytes | None:
        if self.body is None:
            return None
        return json.dumps(self.body, separators=(",", ":")).encode("utf-8")


def _subject_path(subject: str, *segments: str) -> str:
    path = "/subjects/" + quote(subject, safe="")
    for segment in segments:
        path += "/" + segment
    return path


def _version_segment(version: Version) -> str:
    if version == LATEST_VERSION:
        return LATEST_VERSION
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise SchemaRegistryError(
            code=SchemaRegistryErrorCodes.INVALID_ARGUMENT,
            message=f"version must be a positive int or {LATEST_VERSION!r}, got {version!r}",
        )
    return str(version)


def _json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise DecodeError(f"Malformed response body: {e}", cause=e) from e


def _parse_schema(resp: httpx.Response) -> Codec:
    data = _json(resp)
    if not isinstance(data, dict) or not isinstance(data.get("schema"), str):
        raise DecodeError(f"Expected a schema object, got: {resp.text}")
    return Codec(data["schema"])


def _parse_schema_version(resp: httpx.Response) -> SchemaVersion:
    data = _json(resp)
    try:
        result = SchemaVersion(
            subject=data["subject"],
            version=data["version"],
            schema=data["schema"],
            id=data["id"],
        )
    except (KeyError, TypeError) as e:
        raise DecodeError(f"Expected a subject version object, got: {resp.text}", cause=e) from e
    if not isinstance(result.schema, str):
        raise DecodeError(f"Expected schema text, got: {result.schema!r}")
    return result


def _parse_id(resp: httpx.Response) -> int:
    data = _json(resp)
    schema_id = data.get("id") if isinstance(data, dict) else None
    if isinstance(schema_id, bool) or not isinstance(schema_id, int):
        raise DecodeError(f"Expected an id object, got: {resp.text}")
    return schema_id


def _parse_subjects(resp: httpx.Response) -> list[str]:
    data = _json(resp)
    if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
        raise DecodeError(f"Expected a list of subjects, got: {resp.text}")
    return data


def _parse_versions(resp: httpx.Response) -> list[int]:
    data = _json(resp)
    if not isinstance(data, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in data
    ):
        raise DecodeError(f"Expected a list of versions, got: {resp.text}")
    return data


class HttpSchemaRegistryClient(SchemaRegistryClient):
    """httpx を使った Schema Registry HTTP クライアント。

    1 回の論理呼び出しごとにランダムな開始位置からエンドポイントを巡回し、
    5xx またはネットワークエラーのときだけ ``config.retries`` 回まで再試行する。
    それ以外の非成功ステータスは再試行せずに RegistryError として返す。
    """

    def __init__(self, config: SchemaRegistryConfig) -> None:
        self._config = config

    @property
    def config(self) -> SchemaRegistryConfig:
        return self._config

    def _make_sync_client(self) -> httpx.Client:
        return httpx.Client(
            auth=self._config.auth,
            headers=_HEADERS,
            timeout=self._config.timeout_seconds,
            follow_redirects=True,
        )

    def _make_async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=self._config.auth,
            headers=_HEADERS,
            timeout=self._config.timeout_seconds,
            follow_redirects=True,
        )

    def _deadline(self) -> float | None:
        if self._config.call_timeout_seconds is None:
            return None
        return time.monotonic() + self._config.call_timeout_seconds

    def _attempt_timeout(self, deadline: float | None) -> float:
        if deadline is None:
            return self._config.timeout_seconds
        remaining = deadline - time.monotonic()
        return max(min(self._config.timeout_seconds, remaining), _MIN_ATTEMPT_TIMEOUT)

    def _backoff(self, attempt: int, deadline: float | None) -> float:
        """次の試行までの待機秒数（full jitter）。"""
        base = self._config.retry_backoff_seconds
        if base <= 0:
            return 0.0
        delay = random.random() * min(base * (2**attempt), self._config.max_backoff_seconds)
        if deadline is not None:
            delay = min(delay, max(deadline - time.monotonic(), 0.0))
        return delay

    def _should_retry(
        self,
        request: _Request,
        url: str,
        attempt: int,
        resp: httpx.Response | None,
        error: httpx.TransportError | None,
        deadline: float | None,
    ) -> bool:
        if resp is not None and not _is_retriable(resp.status_code):
            return False
        log = logger.bind(
            method=request.method,
            url=url,
            attempt=attempt,
            status_code=resp.status_code if resp is not None else None,
            error=str(error) if error is not None else None,
        )
        if attempt >= self._config.retries:
            if self._config.retries > 0:
                log.warning("schema registry retries exhausted", retries=self._config.retries)
            return False
        if deadline is not None and time.monotonic() >= deadline:
            log.warning(
                "schema registry call deadline exceeded",
                call_timeout_seconds=self._config.call_timeout_seconds,
            )
            return False
        log.warning("schema registry request failed, retrying")
        return True

    def _result(
        self,
        request: _Request,
        url: str,
        resp: httpx.Response | None,
        error: httpx.TransportError | None,
    ) -> httpx.Response:
        if error is not None:
            raise TransportError(
                f"{request.method} {url} failed: {error}",
                cause=error,
            ) from error
        if resp is None:
            raise TransportError(f"{request.method} {url} returned no response")
        if not _is_success(resp.status_code):
            raise RegistryError.from_response(resp)
        return resp

    def _call(self, request: _Request) -> httpx.Response:
        endpoints = self._config.endpoints
        offset = random.randrange(len(endpoints))
        deadline = self._deadline()
        content = request.content()
        with self._make_sync_client() as client:
            attempt = 0
            while True:
                url = endpoints[(offset + attempt) % len(endpoints)] + request.path
                resp: httpx.Response | None = None
                error: httpx.TransportError | None = None
                try:
                    resp = client.request(
                        request.method,
                        url,
                        content=content,
                        timeout=self._attempt_timeout(deadline),
                    )
                except httpx.TransportError as e:
                    error = e
                if not self._should_retry(request, url, attempt, resp, error, deadline):
                    return self._result(request, url, resp, error)
                delay = self._backoff(attempt, deadline)
                if delay > 0:
                    time.sleep(delay)
                attempt += 1

    async def _call_async(self, request: _Request) -> httpx.Response:
        endpoints = self._config.endpoints
        offset = random.randrange(len(endpoints))
        deadline = self._deadline()
        content = request.content()
        async with self._make_async_client() as client:
            attempt = 0
            while True:
                url = endpoints[(offset + attempt) % len(endpoints)] + request.path
                resp: httpx.Response | None = None
                error: httpx.TransportError | None = None
                try:
                    resp = await client.request(
                        request.method,
                        url,
                        content=content,
                        timeout=self._attempt_timeout(deadline),
                    )
                except httpx.TransportError as e:
                    error = e
                if not self._should_retry(request, url, attempt, resp, error, deadline):
                    return self._result(request, url, resp, error)
                delay = self._backoff(attempt, deadline)
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1

    # --- リクエスト定義 ---

    @staticmethod
    def _get_schema_request(schema_id: int) -> _Request:
        return _Request("GET", f"/schemas/ids/{int(schema_id)}")

    @staticmethod
    def _schema_body(schema: str | Codec) -> dict[str, Any]:
        return {"schema": schema_text(schema)}

    # --- 操作 ---

    def get_schema(self, schema_id: int) -> Codec:
        return _parse_schema(self._call(self._get_schema_request(schema_id)))

    async def get_schema_async(self, schema_id: int) -> Codec:
        return _parse_schema(await self._call_async(self._get_schema_request(schema_id)))

    def get_subjects(self) -> list[str]:
        return _parse_subjects(self._call(_Request("GET", "/subjects")))

    async def get_subjects_async(self) -> list[str]:
        return _parse_subjects(await self._call_async(_Request("GET", "/subjects")))

    def get_versions(self, subject: str) -> list[int]:
        request = _Request("GET", _subject_path(subject, "versions"))
        return _parse_versions(self._call(request))

    async def get_versions_async(self, subject: str) -> list[int]:
        request = _Request("GET", _subject_path(subject, "versions"))
        return _parse_versions(await self._call_async(request))

    def get_schema_by_version(self, subject: str, version: Version) -> Codec:
        request = _Request("GET", _subject_path(subject, "versions", _version_segment(version)))
        return Codec(_parse_schema_version(self._call(request)).schema)

    async def get_schema_by_version_async(self, subject: str, version: Version) -> Codec:
        request = _Request("GET", _subject_path(subject, "versions", _version_segment(version)))
        return Codec(_parse_schema_version(await self._call_async(request)).schema)

    def create_subject(self, subject: str, schema: str | Codec) -> int:
        request = _Request("POST", _subject_path(subject, "versions"), self._schema_body(schema))
        return _parse_id(self._call(request))

    async def create_subject_async(self, subject: str, schema: str | Codec) -> int:
        request = _Request("POST", _subject_path(subject, "versions"), self._schema_body(schema))
        return _parse_id(await self._call_async(request))

    def is_schema_registered(self, subject: str, schema: str | Codec) -> int:
        request = _Request("POST", _subject_path(subject), self._schema_body(schema))
        return _parse_id(self._call(request))

    async def is_schema_registered_async(self, subject: str, schema: str | Codec) -> int:
        request = _Request("POST", _subject_path(subject), self._schema_body(schema))
        return _parse_id(await self._call_async(request))

    def delete_subject(self, subject: str) -> None:
        self._call(_Request("DELETE", _subject_path(subject)))

    async def delete_subject_async(self, subject: str) -> None:
        await self._call_async(_Request("DELETE", _subject_path(subject)))

    def delete_version(self, subject: str, version: Version) -> None:
        request = _Request("DELETE", _subject_path(subject, "versions", _version_segment(version)))
        self._call(request)

    async def delete_version_async(self, subject: str, version: Version) -> None:
        request = _Request("DELETE", _subject_path(subject, "versions", _version_segment(version)))
        await self._call_async(request)
