#!/usr/bin/env python3
"""
Services Package Initialization

This package contains all service layer components for the M3U Proxy application.
It exports rule compilation, playlist parsing/filtering/writing, guide filtering,
and retrieval services.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""
from .rule_compiler import (
    RuleCompileError,
    CompiledFilter,
    CompiledTransformation,
    CompiledModel,
    compile_model,
)
from .stream_filter import is_valid, apply_transformations, process_entry
from .playlist_parser import parse_playlist, read_playlist
from .playlist_writer import render_playlist, write_playlist
from .guide_filter import filter_guide, write_guide
from .retriever import Retriever, RetrievalError

# hold the necessary modules
__all__ = [
    "RuleCompileError",
    "CompiledFilter",
    "CompiledTransformation",
    "CompiledModel",
    "compile_model",
    "is_valid",
    "apply_transformations",
    "process_entry",
    "parse_playlist",
    "read_playlist",
    "render_playlist",
    "write_playlist",
    "filter_guide",
    "write_guide",
    "Retriever",
    "RetrievalError",
]
