"""Avro スキーマテキストをコンパイル済みコーデックに変換する"""

from __future__ import annotations

import json
from typing import Any

import fastavro

from .exceptions import DecodeError


class Codec:
    """検証済み Avro スキーマ。

    生成後は不変。等価性は元のスキーマテキストで判定する。
    """

    __slots__ = ("_schema", "_parsed")

    def __init__(self, schema: str) -> None:
        try:
            parsed = fastavro.parse_schema(json.loads(schema))
        except Exception as e:
            raise DecodeError(f"Failed to compile schema: {e}", cause=e) from e
        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_parsed", parsed)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def schema(self) -> str:
        """登録・取得に使う元のスキーマテキスト。"""
        return self._schema

    @property
    def parsed_schema(self) -> Any:
        """fastavro の reader / writer に渡せるパース済みスキーマ。"""
        return self._parsed

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Codec):
            return NotImplemented
        return self._schema == other._schema

    def __hash__(self) -> int:
        return hash(self._schema)

    def __repr__(self) -> str:
        return f"Codec({self._schema!r})"


def schema_text(schema: str | Codec) -> str:
    """スキーマテキストまたは Codec からスキーマテキストを取り出す。"""
    if isinstance(schema, Codec):
        return schema.schema
    return schema
