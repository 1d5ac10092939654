#!/usr/bin/env python3
"""
Playlist Data Models Module

This module defines the parsed playlist document and the per source
run result models.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# add our imports
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

# a channel entry maps field names (tvg-id, tvg-name, stream, metadata, ...) to values
ChannelEntry = Dict[str, str]

"""
A parsed playlist

Holds the preserved header line and the ordered channel entries that
survived a model's filters.
"""
@dataclass
class PlaylistDocument:
    """A parsed playlist"""
    header: str = ""
    entries: List[ChannelEntry] = field(default_factory=list)

"""
Outcome of processing one source

Used for the run summary and the status endpoint.
"""
@dataclass
class SourceResult:
    """Outcome of processing one source"""
    name: str
    success: bool = False
    models_written: List[str] = field(default_factory=list)
    guide_written: bool = False
    error: Optional[str] = None
    finished_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "success": self.success,
            "models_written": list(self.models_written),
            "guide_written": self.guide_written,
            "error": self.error,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
