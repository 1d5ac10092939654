#!/usr/bin/env python3
"""
M3U Playlist Writer Module

This module serializes a parsed playlist back into M3U text.
It performs no filtering or transformation.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import os, logging
from pathlib import Path
from typing import Iterator, Union
from m3uproxy.models import ChannelEntry, PlaylistDocument

# setup the logger
logger = logging.getLogger(__name__)

"""
Render the lines of a single entry

@param entry: ChannelEntry Entry to serialize
@return str: The #EXTINF line, any metadata and the stream line
"""
def render_entry(entry: ChannelEntry) -> str:

    # start up the ext-inf string line
    extinf = '#EXTINF:-1'
    if entry.get('tvg-id'):
        extinf += f' tvg-id="{entry["tvg-id"]}"'
    if entry.get('tvg-name'):
        extinf += f' tvg-name="{entry["tvg-name"]}"'
    if entry.get('tvg-logo'):
        extinf += f' tvg-logo="{entry["tvg-logo"]}"'

    # group-title is always written, even when synthesized
    extinf += f' group-title="{entry.get("group-title", "")}",{entry.get("tvg-name", "")}\n'

    # metadata already carries its own line breaks
    return extinf + entry.get('metadata', '') + f'{entry["stream"]}\n'

"""
Render a playlist chunk by chunk

@param document: PlaylistDocument Playlist to serialize
@return Iterator[str]: The header followed by one chunk per entry
"""
def iter_playlist(document: PlaylistDocument) -> Iterator[str]:
    yield document.header
    for entry in document.entries:
        yield render_entry(entry)

"""
Render a whole playlist

@param document: PlaylistDocument Playlist to serialize
@return str: M3U playlist content
"""
def render_playlist(document: PlaylistDocument) -> str:
    return ''.join(iter_playlist(document))

"""
Write a playlist to disk
Writes to a temporary file first and moves it over the target, so readers
never see a half written playlist.

@param document: PlaylistDocument Playlist to serialize
@param path: str|Path Destination file
@return None
"""
def write_playlist(document: PlaylistDocument, path: Union[str, Path]) -> None:

    # prepare destination
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_target = target.with_name(target.name + '.tmp')

    # and export
    with open(tmp_target, 'w', encoding='utf-8', newline='\n') as f:
        for chunk in iter_playlist(document):
            f.write(chunk)

    os.replace(tmp_target, target)
    logger.debug(f"Wrote {len(document.entries)} entries to {target}")
