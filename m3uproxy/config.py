#!/usr/bin/env python3
"""
Configuration Loader Module

This module handles loading and parsing of YAML configuration files
for the M3U Proxy application. It converts raw YAML data into
structured configuration objects. Since YAML is a superset of JSON,
config.json files written for earlier versions load as well.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import yaml
from pathlib import Path
from m3uproxy.models import (
    AppConfig,
    SourceConfig,
    ModelConfig,
    FilterConfig,
    TransformationConfig,
)

"""
Pull a value that may be written in snake_case or camelCase

@param data: dict Raw mapping
@param snake: str Preferred key
@param camel: str Legacy key
@param default: any Value when neither key is present
@return any: The configured value
"""
def _get(data: dict, snake: str, camel: str, default=None):
    if snake in data:
        return data[snake]
    return data.get(camel, default)

"""
Make sure a required key is present

@param data: dict Raw mapping
@param key: str Required key
@param where: str Description used in the error message
@return any: The value
@throws ValueError: When the key is missing or empty
"""
def _require(data: dict, key: str, where: str):
    value = data.get(key)
    if value in (None, ""):
        raise ValueError(f"Missing '{key}' in {where}")
    return value

"""
Read a boolean setting, accepting the usual string spellings

@param value: any Raw value from the config
@param key: str Setting name, used in the error message
@return bool: The parsed value
@throws ValueError: When the value is not recognizably true or false
"""
def _as_bool(value, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
    raise ValueError(f"Invalid boolean for '{key}': {value!r}")

"""
Build a model configuration from raw data

@param model_data: dict Raw model mapping
@param source_name: str Owning source, used in error messages
@return ModelConfig: The model configuration
"""
def _parse_model(model_data: dict, source_name: str) -> ModelConfig:

    # the name may be empty: outputs are named source + model
    name = model_data.get('name', '') or ''
    where = f"model '{name}' of source '{source_name}'"

    # setup and hold the filters
    filters = tuple(
        FilterConfig(
            field=_require(f, 'field', where),
            regex=_require(f, 'regex', where)
        )
        for f in (model_data.get('filters') or [])
    )

    # setup and hold the transformations
    transformations = tuple(
        TransformationConfig(
            field=_require(t, 'field', where),
            regex=_require(t, 'regex', where),
            substitution=str(t.get('substitution', '') or '')
        )
        for t in (model_data.get('transformations') or [])
    )

    return ModelConfig(name=str(name), filters=filters, transformations=transformations)

"""
Load and parse configuration from YAML file

Reads the specified YAML configuration file, validates its existence,
and converts the data into structured configuration objects for use
throughout the application.

@param config_path: str Path to the YAML (or JSON) configuration file
@return AppConfig: Fully populated application configuration object
@throws FileNotFoundError: When the specified config file does not exist
@throws ValueError: When a source or rule is missing a required key
"""
def load_config(config_path: str) -> AppConfig:

    # load the config file
    config_file = Path(config_path)

    # make sure it actually exists
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    # now open it grab the data as yaml
    with open(config_file, 'r', encoding='utf-8') as f:
        config_data = yaml.safe_load(f) or {}

    # setup and hold the sources
    sources = []
    for source_data in config_data.get('sources', []) or []:
        name = str(_require(source_data, 'name', 'source'))
        sources.append(SourceConfig(
            name=name,
            m3u=_require(source_data, 'm3u', f"source '{name}'"),
            epg=source_data.get('epg') or None,
            models=tuple(_parse_model(m, name) for m in (source_data.get('models') or []))
        ))

    # return the applications configuration with defaults if necessary
    return AppConfig(
        sources=tuple(sources),
        import_folder=_get(config_data, 'import_folder', 'importFolder', './imported'),
        export_folder=_get(config_data, 'export_folder', 'exportFolder', './exported'),
        log_level=config_data.get('log_level', 'INFO'),
        request_timeout=int(config_data.get('request_timeout', 300)),
        verify_ssl=_as_bool(config_data.get('verify_ssl', True), 'verify_ssl'),
        user_agent=config_data.get('user_agent', 'M3U-Proxy/1.0'),
        bind_host=config_data.get('bind_host', '0.0.0.0'),
        bind_port=int(config_data.get('bind_port', 8080)),
        refresh_interval=int(config_data.get('refresh_interval', 3600))
    )
