#!/usr/bin/env python3
"""
Models Package Initialization

This package contains all data model definitions for the M3U Proxy application.
It exports configuration, playlist and run result models.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""
from .config import (
    FilterConfig,
    TransformationConfig,
    ModelConfig,
    SourceConfig,
    AppConfig,
)
from .playlist import ChannelEntry, PlaylistDocument, SourceResult

# hold the necessary modules
__all__ = [
    "FilterConfig",
    "TransformationConfig",
    "ModelConfig",
    "SourceConfig",
    "AppConfig",
    "ChannelEntry",
    "PlaylistDocument",
    "SourceResult",
]
