from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import tempfile
from typing import Any

from .selector_rules import ATTRIBUTE_PRIORITY, TEXT_TAGS

CONFIG_DIR = Path.home() / ".xpathpicker"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOG_DIR = CONFIG_DIR / "logs"

logger = logging.getLogger("xpathpicker.engine")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    max_hops: int = 4
    max_depth: int = 8
    exact_text_limit: int = 50
    text_limit: int = 100
    contains_prefix: int = 40
    text_tags: frozenset[str] = field(default_factory=lambda: TEXT_TAGS)
    attribute_priority: tuple[str, ...] = ATTRIBUTE_PRIORITY

    @property
    def identifier_attributes(self) -> tuple[str, ...]:
        return ("id", "placeholder", *self.attribute_priority)


DEFAULT_CONFIG = EngineConfig()

_INT_FIELDS = ("max_hops", "max_depth", "exact_text_limit", "text_limit", "contains_prefix")


def load_engine_config(config_path: Path | None = None) -> EngineConfig:
    path = config_path or CONFIG_PATH
    if not path.exists() or not path.is_file():
        return EngineConfig()

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError) as exc:
        logger.warning("Ignoring unreadable engine config %s: %s", path, exc)
        return EngineConfig()

    if not isinstance(payload, dict):
        return EngineConfig()

    values: dict[str, Any] = {}
    for key in _INT_FIELDS:
        if key not in payload:
            continue
        raw = payload[key]
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            logger.warning("Ignoring invalid %s=%r in %s", key, raw, path)
            continue
        values[key] = raw

    tags = _string_items(payload.get("text_tags"))
    if tags is not None:
        values["text_tags"] = frozenset(tag.lower() for tag in tags)

    attributes = _string_items(payload.get("attribute_priority"))
    if attributes is not None:
        values["attribute_priority"] = tuple(attributes)

    return EngineConfig(**values)


def save_engine_config(config: EngineConfig, config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    payload = json.dumps(_config_payload(config), ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            temp_path = Path(handle.name)
        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write engine config: {exc}"

    return True, None


def _config_payload(config: EngineConfig) -> dict[str, Any]:
    payload: dict[str, Any] = {key: getattr(config, key) for key in _INT_FIELDS}
    payload["text_tags"] = sorted(config.text_tags)
    payload["attribute_priority"] = list(config.attribute_priority)
    return payload


def _string_items(raw: Any) -> list[str] | None:
    if not isinstance(raw, list):
        return None
    items = [item.strip() for item in raw if isinstance(item, str) and item.strip()]
    return items or None
