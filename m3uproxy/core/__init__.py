#!/usr/bin/env python3
"""
Core Package Initialization

This package contains the core components for the M3U Proxy application.
It exports the main M3UProxy class for application use.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""
from .proxy import M3UProxy

__all__ = ["M3UProxy"]
