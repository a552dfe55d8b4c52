from __future__ import annotations

import json
from pathlib import Path

import pytest

from markpaper.core.exceptions import ConfigurationError
from markpaper.core.loader import (
    apply_overrides,
    default_config,
    discover_config,
    load_config,
    merge_options,
    nested_overrides,
    read_config_file,
)


def test_discover_config_walks_up_the_tree(tmp_path: Path) -> None:
    config_file = tmp_path / "markpaper.config.json"
    config_file.write_text("{}", encoding="utf-8")
    nested = tmp_path / "docs" / "chapter"
    nested.mkdir(parents=True)

    assert discover_config(nested) == config_file.resolve()


def test_discover_config_prefers_rc_file(tmp_path: Path) -> None:
    (tmp_path / "markpaper.config.yaml").write_text("debug: true\n", encoding="utf-8")
    rc = tmp_path / ".markpaperrc"
    rc.write_text("debug: false\n", encoding="utf-8")

    assert discover_config(tmp_path) == rc.resolve()


def test_rc_file_without_suffix_is_parsed_as_yaml(tmp_path: Path) -> None:
    rc = tmp_path / ".markpaperrc"
    rc.write_text("page:\n  size: A3\nfont:\n  size: 10\n", encoding="utf-8")

    config = load_config(search_from=tmp_path)

    assert config.page.size == "A3"
    assert config.font.size == 10
    assert config.font.main == default_config().font.main


def test_rc_file_may_contain_json(tmp_path: Path) -> None:
    rc = tmp_path / ".markpaperrc"
    rc.write_text(json.dumps({"mermaid": {"theme": "dark"}}), encoding="utf-8")

    assert load_config(rc).mermaid.theme == "dark"


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    config_file = tmp_path / "markpaper.config.json"
    config_file.write_text(json.dumps({"css": "styles/custom.css"}), encoding="utf-8")

    config = load_config(config_file)

    assert config.css == tmp_path.resolve() / "styles" / "custom.css"


def test_load_config_without_file_returns_defaults(tmp_path: Path) -> None:
    assert load_config(search_from=tmp_path / "missing" / "..") == default_config()


def test_explicit_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_malformed_config_raises(tmp_path: Path) -> None:
    path = tmp_path / "markpaper.config.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Malformed"):
        read_config_file(path)


def test_non_mapping_config_raises(tmp_path: Path) -> None:
    path = tmp_path / "markpaper.config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="mapping"):
        read_config_file(path)


def test_unknown_key_in_config_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "markpaper.config.yaml"
    path.write_text("pager:\n  size: A4\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(path)


def test_nested_overrides_builds_mapping_and_skips_none() -> None:
    overrides = nested_overrides(
        [
            ("page.margin.top", "3cm"),
            ("page.margin.left", None),
            ("pageBreak.beforeH2", True),
            ("mermaid.background_color", "white"),
        ]
    )

    assert overrides == {
        "page": {"margin": {"top": "3cm"}},
        "pageBreak": {"beforeH2": True},
        "mermaid": {"backgroundColor": "white"},
    }


def test_merge_options_layers_over_file_values(tmp_path: Path) -> None:
    path = tmp_path / "markpaper.config.yaml"
    path.write_text("page:\n  size: A3\n  margin:\n    top: 1cm\n", encoding="utf-8")

    config = merge_options(load_config(path), nested_overrides([("page.size", "Letter")]))

    assert config.page.size == "Letter"
    assert config.page.margin.top == "1cm"


def test_apply_overrides_reports_invalid_values() -> None:
    with pytest.raises(ConfigurationError):
        apply_overrides(default_config(), {"mermaid": {"width": -5}})
