"""テスト共通フィクスチャ（インメモリ Schema Registry と記録用クライアント）"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
import respx
from k1s0_schema_registry import (
    Codec,
    HttpSchemaRegistryClient,
    SchemaNotFoundError,
    SchemaRegistryClient,
    SchemaRegistryConfig,
)

BASE_URL = "http://schema-registry:8081"

RECORD_SCHEMA = '{"type":"record","name":"t","fields":[{"name":"val","type":"int"}]}'
RECORD_SCHEMA_V2 = (
    '{"type":"record","name":"t","fields":[{"name":"val","type":"int"},'
    '{"name":"val2","type":["null","string"],"default":null}]}'
)


def _error(status: int, error_code: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error_code": error_code, "message": message})


class FakeRegistry:
    """Schema Registry の REST API を模したインメモリ実装。"""

    def __init__(self) -> None:
        self._next_id = 1
        self._ids: dict[str, int] = {}
        self._schemas: dict[int, str] = {}
        self._subjects: dict[str, dict[int, int]] = {}
        self._next_version: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        segments = request.url.path.strip("/").split("/")
        method = request.method
        if segments[:2] == ["schemas", "ids"] and method == "GET":
            return self._get_schema(int(segments[2]))
        if segments[0] != "subjects":
            return _error(404, 404, "HTTP 404 Not Found")
        if len(segments) == 1 and method == "GET":
            return httpx.Response(200, json=list(self._subjects))
        subject = segments[1]
        if len(segments) == 2:
            if method == "POST":
                return self._lookup(subject, self._body_schema(request))
            if method == "DELETE":
                return self._delete_subject(subject)
        if len(segments) == 3 and segments[2] == "versions":
            if method == "GET":
                return self._get_versions(subject)
            if method == "POST":
                return self._register(subject, self._body_schema(request))
        if len(segments) == 4 and segments[2] == "versions":
            if method == "GET":
                return self._get_version(subject, segments[3])
            if method == "DELETE":
                return self._delete_version(subject, segments[3])
        return _error(405, 405, "HTTP 405 Method Not Allowed")

    @staticmethod
    def _body_schema(request: httpx.Request) -> str:
        body: dict[str, Any] = json.loads(request.content)
        return str(body["schema"])

    def _get_schema(self, schema_id: int) -> httpx.Response:
        if schema_id not in self._schemas:
            return _error(404, 40403, "Schema not found")
        return httpx.Response(200, json={"schema": self._schemas[schema_id]})

    def _register(self, subject: str, schema: str) -> httpx.Response:
        versions = self._subjects.setdefault(subject, {})
        schema_id = self._ids.get(schema)
        if schema_id is not None and schema_id in versions.values():
            return httpx.Response(200, json={"id": schema_id})
        if schema_id is None:
            schema_id = self._next_id
            self._next_id += 1
            self._ids[schema] = schema_id
            self._schemas[schema_id] = schema
        version = self._next_version.get(subject, 1)
        self._next_version[subject] = version + 1
        versions[version] = schema_id
        return httpx.Response(200, json={"id": schema_id})

    def _lookup(self, subject: str, schema: str) -> httpx.Response:
        versions = self._subjects.get(subject)
        if versions is None:
            return _error(404, 40401, "Subject not found.")
        schema_id = self._ids.get(schema)
        if schema_id is None or schema_id not in versions.values():
            return _error(404, 40403, "Schema not found")
        return httpx.Response(200, json={"id": schema_id})

    def _get_versions(self, subject: str) -> httpx.Response:
        if subject not in self._subjects:
            return _error(404, 40401, "Subject not found.")
        return httpx.Response(200, json=sorted(self._subjects[subject]))

    def _resolve_version(self, subject: str, version: str) -> int | httpx.Response:
        versions = self._subjects.get(subject)
        if versions is None:
            return _error(404, 40401, "Subject not found.")
        number = max(versions, default=0) if version == "latest" else int(version)
        if number not in versions:
            return _error(404, 40402, "Version not found.")
        return number

    def _get_version(self, subject: str, version: str) -> httpx.Response:
        number = self._resolve_version(subject, version)
        if isinstance(number, httpx.Response):
            return number
        schema_id = self._subjects[subject][number]
        return httpx.Response(
            200,
            json={
                "subject": subject,
                "version": number,
                "schema": self._schemas[schema_id],
                "id": schema_id,
            },
        )

    def _delete_version(self, subject: str, version: str) -> httpx.Response:
        number = self._resolve_version(subject, version)
        if isinstance(number, httpx.Response):
            return number
        del self._subjects[subject][number]
        return httpx.Response(200, json=number)

    def _delete_subject(self, subject: str) -> httpx.Response:
        versions = self._subjects.pop(subject, None)
        if versions is None:
            return _error(404, 40401, "Subject not found.")
        return httpx.Response(200, json=sorted(versions))


class RecordingClient(SchemaRegistryClient):
    """呼び出しを記録するテストダブル。get_schema は ID から固定スキーマを返す。"""

    def __init__(self, delay: float = 0.0) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._delay = delay
        self._mutex = threading.Lock()
        self.fail_ids: set[int] = set()

    def _record(self, name: str, *args: Any) -> None:
        with self._mutex:
            self.calls.append((name, args))

    def count(self, name: str) -> int:
        with self._mutex:
            return sum(1 for call, _ in self.calls if call == name)

    def _codec(self, schema_id: int) -> Codec:
        if schema_id in self.fail_ids:
            raise SchemaNotFoundError(404, 40403, "Schema not found")
        return Codec(RECORD_SCHEMA)

    def get_schema(self, schema_id: int) -> Codec:
        self._record("get_schema", schema_id)
        if self._delay:
            time.sleep(self._delay)
        return self._codec(schema_id)

    async def get_schema_async(self, schema_id: int) -> Codec:
        self._record("get_schema_async", schema_id)
        return self._codec(schema_id)

    def get_subjects(self) -> list[str]:
        self._record("get_subjects")
        return ["s1"]

    async def get_subjects_async(self) -> list[str]:
        self._record("get_subjects_async")
        return ["s1"]

    def get_versions(self, subject: str) -> list[int]:
        self._record("get_versions", subject)
        return [1, 2]

    async def get_versions_async(self, subject: str) -> list[int]:
        self._record("get_versions_async", subject)
        return [1, 2]

    def get_schema_by_version(self, subject: str, version: int | str) -> Codec:
        self._record("get_schema_by_version", subject, version)
        return Codec(RECORD_SCHEMA)

    async def get_schema_by_version_async(self, subject: str, version: int | str) -> Codec:
        self._record("get_schema_by_version_async", subject, version)
        return Codec(RECORD_SCHEMA)

    def create_subject(self, subject: str, schema: str | Codec) -> int:
        self._record("create_subject", subject, schema)
        return 1

    async def create_subject_async(self, subject: str, schema: str | Codec) -> int:
        self._record("create_subject_async", subject, schema)
        return 1

    def is_schema_registered(self, subject: str, schema: str | Codec) -> int:
        self._record("is_schema_registered", subject, schema)
        return 1

    async def is_schema_registered_async(self, subject: str, schema: str | Codec) -> int:
        self._record("is_schema_registered_async", subject, schema)
        return 1

    def delete_subject(self, subject: str) -> None:
        self._record("delete_subject", subject)

    async def delete_subject_async(self, subject: str) -> None:
        self._record("delete_subject_async", subject)

    def delete_version(self, subject: str, version: int | str) -> None:
        self._record("delete_version", subject, version)

    async def delete_version_async(self, subject: str, version: int | str) -> None:
        self._record("delete_version_async", subject, version)


@pytest.fixture
def fake_registry() -> Iterator[FakeRegistry]:
    """BASE_URL 宛てのリクエストをすべて FakeRegistry で処理する。"""
    registry = FakeRegistry()
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        mock.route().mock(side_effect=registry.handle)
        yield registry


@pytest.fixture
def http_client() -> HttpSchemaRegistryClient:
    return HttpSchemaRegistryClient(SchemaRegistryConfig(endpoints=[BASE_URL]))


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()
