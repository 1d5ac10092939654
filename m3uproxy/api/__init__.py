#!/usr/bin/env python3
"""
API Package Initialization

This package contains the HTTP routes used when the M3U Proxy serves its
generated playlists and guides.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""
from .routes import router

__all__ = ["router"]
