from __future__ import annotations

import json

import pytest

from m3uproxy.config import load_config


def test_load_yaml_config(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        """
import_folder: ./in
export_folder: ./out
log_level: DEBUG
sources:
  - name: prov
    m3u: http://example/list.m3u
    epg: http://example/guide.xml
    models:
      - name: all
      - name: sports
        filters:
          - field: group-title
            regex: sport
        transformations:
          - field: tvg-name
            regex: ' HD$'
""",
        encoding="utf-8",
    )
    config = load_config(str(path))

    assert config.import_folder == "./in"
    assert config.export_folder == "./out"
    assert config.log_level == "DEBUG"
    source = config.sources[0]
    assert source.epg == "http://example/guide.xml"
    assert [m.name for m in source.models] == ["all", "sports"]
    assert source.models[0].filters == ()
    assert source.models[1].filters[0].regex == "sport"
    assert source.models[1].transformations[0].substitution == ""


def test_load_legacy_json_config(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "importFolder": "/tmp/in",
                "exportFolder": "/tmp/out",
                "sources": [{"name": "a", "m3u": "http://example/a.m3u", "models": [{"name": ""}]}],
            }
        ),
        encoding="utf-8",
    )
    config = load_config(str(path))

    assert config.import_folder == "/tmp/in"
    assert config.export_folder == "/tmp/out"
    assert config.sources[0].epg is None
    assert config.sources[0].models[0].name == ""


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_missing_required_key_raises(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("sources:\n  - name: a\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_verify_ssl_accepts_string_spellings(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text('verify_ssl: "false"\n', encoding="utf-8")
    assert load_config(str(path)).verify_ssl is False

    path.write_text("verify_ssl: 'Yes'\n", encoding="utf-8")
    assert load_config(str(path)).verify_ssl is True


def test_verify_ssl_rejects_unknown_values(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text('verify_ssl: "maybe"\n', encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))
