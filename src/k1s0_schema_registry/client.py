"""Schema Registry クライアント抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .codec import Codec

Version = int | str
"""バージョン番号、または最新を表す ``"latest"``。"""


class SchemaRegistryClient(ABC):
    """Schema Registry クライアント抽象基底クラス。"""

    @abstractmethod
    def get_schema(self, schema_id: int) -> Codec:
        """ID でスキーマを取得する。"""
        ...

    @abstractmethod
    async def get_schema_async(self, schema_id: int) -> Codec:
        """非同期で ID でスキーマを取得する。"""
        ...

    @abstractmethod
    def get_subjects(self) -> list[str]:
        """全 subject をレジストリの順序で取得する。"""
        ...

    @abstractmethod
    async def get_subjects_async(self) -> list[str]:
        """非同期で全 subject を取得する。"""
        ...

    @abstractmethod
    def get_versions(self, subject: str) -> list[int]:
        """subject のバージョン番号一覧を取得する。"""
        ...

    @abstractmethod
    async def get_versions_async(self, subject: str) -> list[int]:
        """非同期で subject のバージョン番号一覧を取得する。"""
        ...

    @abstractmethod
    def get_schema_by_version(self, subject: str, version: Version) -> Codec:
        """subject の指定バージョンのスキーマを取得する。"""
        ...

    @abstractmethod
    async def get_schema_by_version_async(self, subject: str, version: Version) -> Codec:
        """非同期で subject の指定バージョンのスキーマを取得する。"""
        ...

    @abstractmethod
    def create_subject(self, subject: str, schema: str | Codec) -> int:
        """subject にスキーマを登録してスキーマ ID を返す。"""
        ...

    @abstractmethod
    async def create_subject_async(self, subject: str, schema: str | Codec) -> int:
        """非同期で subject にスキーマを登録してスキーマ ID を返す。"""
        ...

    @abstractmethod
    def is_schema_registered(self, subject: str, schema: str | Codec) -> int:
        """同一スキーマが subject に登録済みならその ID を返す。"""
        ...

    @abstractmethod
    async def is_schema_registered_async(self, subject: str, schema: str | Codec) -> int:
        """非同期で同一スキーマが subject に登録済みならその ID を返す。"""
        ...

    @abstractmethod
    def delete_subject(self, subject: str) -> None:
        """subject の全バージョンを削除する。"""
        ...

    @abstractmethod
    async def delete_subject_async(self, subject: str) -> None:
        """非同期で subject の全バージョンを削除する。"""
        ...

    @abstractmethod
    def delete_version(self, subject: str, version: Version) -> None:
        """subject の 1 バージョンを削除する。"""
        ...

    @abstractmethod
    async def delete_version_async(self, subject: str, version: Version) -> None:
        """非同期で subject の 1 バージョンを削除する。"""
        ...
