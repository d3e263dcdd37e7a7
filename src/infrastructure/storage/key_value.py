from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from src.application.interfaces.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InMemoryKeyValueStore(KeyValueStore):
    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


@dataclass(slots=True)
class JsonFileKeyValueStore(KeyValueStore):
    """Small string map persisted as one JSON object on disk."""

    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path).expanduser()

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._save(values)

    def delete(self, key: str) -> None:
        values = self._load()
        if values.pop(key, None) is not None:
            self._save(values)

    def _load(self) -> dict[str, str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Unreadable key-value store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, values: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(values, f)
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Could not persist key-value store %s: %s", self.path, e)
