"""YAML 設定ファイルから SchemaRegistryConfig を読み込む"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import SchemaRegistryError, SchemaRegistryErrorCodes
from .models import SchemaRegistryConfig


class SchemaRegistrySection(BaseModel):
    """``schema_registry`` セクション。"""

    endpoints: list[str] = Field(min_length=1)
    retries: int = Field(default=0, ge=0)
    username: str = ""
    password: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0)
    call_timeout_seconds: float | None = Field(default=None, gt=0)
    retry_backoff_seconds: float = Field(default=0.0, ge=0)
    max_backoff_seconds: float = Field(default=5.0, ge=0)


class ConfigFile(BaseModel):
    """設定ファイル全体。schema_registry 以外のセクションは無視する。"""

    schema_registry: SchemaRegistrySection


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """環境別設定 override を base に重ねた新しい辞書を返す。

    リストは置換する。override 側の null（``retries:`` のような空値）は
    base の値を残す。
    """
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if value is None and key in result:
            continue
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaRegistryError(
            code=SchemaRegistryErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise SchemaRegistryError(
            code=SchemaRegistryErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise SchemaRegistryError(
            code=SchemaRegistryErrorCodes.PARSE_YAML,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def load_config(base_path: Path, env_path: Path | None = None) -> SchemaRegistryConfig:
    """設定ファイルを読み込んで SchemaRegistryConfig を返す。

    base_path: ベース設定ファイルパス（必須）
    env_path: 環境別設定ファイルパス（オプション）。存在する場合はベースにマージ。
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = deep_merge(data, _read_yaml(env_path))
    try:
        section = ConfigFile.model_validate(data).schema_registry
    except ValidationError as e:
        raise SchemaRegistryError(
            code=SchemaRegistryErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
    return SchemaRegistryConfig(**section.model_dump())
