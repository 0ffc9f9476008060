import json
from pathlib import Path

from xpathpicker.config import DEFAULT_CONFIG, EngineConfig, load_engine_config, save_engine_config


def test_engine_config_roundtrip(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    original = EngineConfig(
        max_hops=2,
        max_depth=5,
        text_tags=frozenset({"a", "button"}),
        attribute_priority=("data-qa", "name"),
    )
    ok, error = save_engine_config(original, config_path)
    assert ok
    assert error is None
    assert load_engine_config(config_path) == original
    assert not list(config_path.parent.glob("*.tmp"))


def test_engine_config_load_fallbacks(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    assert load_engine_config(config_path) == DEFAULT_CONFIG
    config_path.write_text("{invalid", encoding="utf-8")
    assert load_engine_config(config_path) == DEFAULT_CONFIG
    config_path.write_text("[1, 2]", encoding="utf-8")
    assert load_engine_config(config_path) == DEFAULT_CONFIG


def test_engine_config_ignores_invalid_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "max_hops": -1,
                "max_depth": "deep",
                "exact_text_limit": True,
                "text_limit": 80,
                "text_tags": ["A", " Span ", 3, ""],
                "attribute_priority": [],
            }
        ),
        encoding="utf-8",
    )
    loaded = load_engine_config(config_path)
    assert loaded.max_hops == DEFAULT_CONFIG.max_hops
    assert loaded.max_depth == DEFAULT_CONFIG.max_depth
    assert loaded.exact_text_limit == DEFAULT_CONFIG.exact_text_limit
    assert loaded.text_limit == 80
    assert loaded.text_tags == frozenset({"a", "span"})
    assert loaded.attribute_priority == DEFAULT_CONFIG.attribute_priority


def test_identifier_attributes_order() -> None:
    assert DEFAULT_CONFIG.identifier_attributes == (
        "id",
        "placeholder",
        "name",
        "class",
        "aria-label",
        "data-testid",
        "data-id",
        "role",
        "title",
    )
