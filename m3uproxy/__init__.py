#!/usr/bin/env python3
"""
M3U Proxy Application Package Initialization

This package contains the M3U Proxy application components.
It exports the version identifier for the application.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# hold the version of the application
__version__ = "1.0.0"
