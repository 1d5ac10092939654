#!/usr/bin/env python3
"""
Configuration Data Models Module

This module defines the configuration classes for the M3U Proxy.
It includes models for sources, output models, filter and transformation
rules, and the application wide settings.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# add our imports
from dataclasses import dataclass, field
from typing import Optional, Tuple

"""
Configuration for a single filter rule

An entry passes a model's filters when at least one rule's regex
matches the value of the rule's field.
"""
@dataclass(frozen=True)
class FilterConfig:
    """Configuration for a filter rule"""
    field: str
    regex: str

"""
Configuration for a single transformation rule

Replaces the first match of regex in the field's value with the substitution.
"""
@dataclass(frozen=True)
class TransformationConfig:
    """Configuration for a transformation rule"""
    field: str
    regex: str
    substitution: str = ""

"""
Configuration for an output model

A model is one filtered/transformed variant of a source's playlist.
"""
@dataclass(frozen=True)
class ModelConfig:
    """Configuration for an output model"""
    name: str
    filters: Tuple[FilterConfig, ...] = ()
    transformations: Tuple[TransformationConfig, ...] = ()

"""
Configuration for a playlist source

Defines where the playlist (and optionally the guide) is fetched from,
and which output models are produced from it.
"""
@dataclass(frozen=True)
class SourceConfig:
    """Configuration for a playlist source"""
    name: str
    m3u: str
    epg: Optional[str] = None
    models: Tuple[ModelConfig, ...] = ()

"""
Main application configuration

Top-level configuration containing all sources, folders, and global settings.
"""
@dataclass(frozen=True)
class AppConfig:
    """Main application configuration"""
    sources: Tuple[SourceConfig, ...] = field(default_factory=tuple)
    import_folder: str = "./imported"
    export_folder: str = "./exported"
    log_level: str = "INFO"
    request_timeout: int = 300  # seconds
    verify_ssl: bool = True
    user_agent: str = "M3U-Proxy/1.0"
    bind_host: str = "0.0.0.0"
    bind_port: int = 8080
    refresh_interval: int = 3600  # seconds
