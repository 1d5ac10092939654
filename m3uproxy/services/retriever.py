#!/usr/bin/env python3
"""
Retriever Module

This module downloads playlists and guides into the import folder.
Bodies are streamed to a temporary file and moved into place once complete,
so a parser never reads a partially downloaded resource.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import os, logging, aiohttp
from pathlib import Path
from typing import Union

# setup the logger
logger = logging.getLogger(__name__)

# read size for streaming bodies to disk
CHUNK_SIZE = 64 * 1024


class RetrievalError(Exception):
    """Raised when a resource could not be retrieved"""


"""
Downloads remote resources to local files

Wraps an aiohttp session owned by the caller.
"""
class Retriever:

    """
    Initialize the Retriever

    @param session: aiohttp.ClientSession HTTP session for requests
    @param verify_ssl: bool Whether to verify TLS certificates
    """
    def __init__(self, session: aiohttp.ClientSession, verify_ssl: bool = True):

        # setup the internals
        self.session = session
        self.verify_ssl = verify_ssl

    """
    Fetch a resource to a destination file

    @param url: str Location of the resource
    @param destination: str|Path Local file to (over)write
    @return Path: The destination path
    @throws RetrievalError: When the response status is not 200
    @throws aiohttp.ClientError: On transport failures
    """
    async def fetch(self, url: str, destination: Union[str, Path]) -> Path:

        # prepare destination
        target = Path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_target = target.with_name(target.name + '.tmp')

        logger.debug(f"Fetching {url} to {target}")

        # fire up the session to request the endpoint
        async with self.session.get(url, ssl=self.verify_ssl) as resp:

            # anything but a 200 is a failure
            if resp.status != 200:
                raise RetrievalError(f"Failed to load resource: {url} (status {resp.status})")

            # pipe received data
            try:
                with open(tmp_target, 'wb') as f:
                    async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)

            # whoops... don't leave a partial file behind
            except Exception:
                tmp_target.unlink(missing_ok=True)
                raise

        # and move it into place
        os.replace(tmp_target, target)
        logger.debug(f"Fetched {url} ({target.stat().st_size} bytes)")
        return target
