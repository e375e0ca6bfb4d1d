"""ID → スキーマを読み取りキャッシュする Schema Registry クライアント"""

from __future__ import annotations

from .client import SchemaRegistryClient, Version
from .codec import Codec
from .rwlock import ReadWriteLock


class CachedSchemaRegistryClient(SchemaRegistryClient):
    """ID によるスキーマ取得だけをキャッシュするクライアント。

    スキーマ ID は発行後に変わらないため、エントリは追加のみで削除・更新しない。
    subject やバージョンの一覧は変化しうるので、それ以外の操作は常に
    ラップしたクライアントへ委譲する。

    同じ未キャッシュ ID への同時取得は重複して通信しうる（同じ値で上書きされる）。
    通信はロックの外で行う。
    """

    def __init__(self, client: SchemaRegistryClient) -> None:
        self._client = client
        self._schemas: dict[int, Codec] = {}
        self._lock = ReadWriteLock()

    def _lookup(self, schema_id: int) -> Codec | None:
        with self._lock.read_lock():
            return self._schemas.get(schema_id)

    def _store(self, schema_id: int, codec: Codec) -> None:
        with self._lock.write_lock():
            self._schemas[schema_id] = codec

    def get_schema(self, schema_id: int) -> Codec:
        cached = self._lookup(schema_id)
        if cached is not None:
            return cached
        codec = self._client.get_schema(schema_id)
        self._store(schema_id, codec)
        return codec

    async def get_schema_async(self, schema_id: int) -> Codec:
        cached = self._lookup(schema_id)
        if cached is not None:
            return cached
        codec = await self._client.get_schema_async(schema_id)
        self._store(schema_id, codec)
        return codec

    def get_subjects(self) -> list[str]:
        return self._client.get_subjects()

    async def get_subjects_async(self) -> list[str]:
        return await self._client.get_subjects_async()

    def get_versions(self, subject: str) -> list[int]:
        return self._client.get_versions(subject)

    async def get_versions_async(self, subject: str) -> list[int]:
        return await self._client.get_versions_async(subject)

    def get_schema_by_version(self, subject: str, version: Version) -> Codec:
        return self._client.get_schema_by_version(subject, version)

    async def get_schema_by_version_async(self, subject: str, version: Version) -> Codec:
        return await self._client.get_schema_by_version_async(subject, version)

    def create_subject(self, subject: str, schema: str | Codec) -> int:
        return self._client.create_subject(subject, schema)

    async def create_subject_async(self, subject: str, schema: str | Codec) -> int:
        return await self._client.create_subject_async(subject, schema)

    def is_schema_registered(self, subject: str, schema: str | Codec) -> int:
        return self._client.is_schema_registered(subject, schema)

    async def is_schema_registered_async(self, subject: str, schema: str | Codec) -> int:
        return await self._client.is_schema_registered_async(subject, schema)

    def delete_subject(self, subject: str) -> None:
        self._client.delete_subject(subject)

    async def delete_subject_async(self, subject: str) -> None:
        await self._client.delete_subject_async(subject)

    def delete_version(self, subject: str, version: Version) -> None:
        self._client.delete_version(subject, version)

    async def delete_version_async(self, subject: str, version: Version) -> None:
        await self._client.delete_version_async(subject, version)
