#!/usr/bin/env python3
"""
M3U Playlist Parser Module

This module parses M3U playlists line by line into channel entries.
Each finished entry is run through the model's filters and transformations
as soon as its stream URL is read, so only one entry is held in progress.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import re, logging
from pathlib import Path
from typing import Iterable, Optional, Union
from m3uproxy.models import ChannelEntry, PlaylistDocument
from m3uproxy.services.rule_compiler import CompiledModel
from m3uproxy.services.stream_filter import process_entry

# setup the logger
logger = logging.getLogger(__name__)

# pre-compiled regex patterns for M3U parsing
FILE_PREFIX_PATTERN = re.compile(r'^#EXTM3U')
EXTINF_PREFIX_PATTERN = re.compile(r'^#EXTINF')
EXTINF_FIELDS_PATTERN = re.compile(
    r'^#EXTINF:-?\d+,?' + r'(?: *?([\w-]*)="(.*?)")?' * 5 + r'.*,(.*)'
)
STREAM_PREFIX_PATTERN = re.compile(r'^(?:https?|rtmp[est]?|rtsp|rtp|udp|mms)://', re.IGNORECASE)
GROUP_FROM_NAME_PATTERN = re.compile(r'\w*')

# the title is the last group of the extinf pattern
_TITLE_GROUP = 11

"""
Parse the attributes of an #EXTINF line into a fresh entry

@param line: str The #EXTINF line
@return ChannelEntry|None: The new entry, or None when the line is malformed
"""
def parse_extinf(line: str) -> Optional[ChannelEntry]:

    # try to match the line
    match = EXTINF_FIELDS_PATTERN.match(line)
    if not match:
        return None

    # setup the key/value pairs
    fields: ChannelEntry = {}
    for i in range(1, _TITLE_GROUP, 2):
        key = match.group(i)
        if key:
            fields[key] = match.group(i + 1)

    # compact m3u files carry the name in the title only
    if not fields.get('tvg-name'):
        fields['tvg-name'] = match.group(_TITLE_GROUP).strip()

    # and no group-title either
    if not fields.get('group-title'):
        fields['group-title'] = GROUP_FROM_NAME_PATTERN.match(fields['tvg-name']).group(0)

    return fields

"""
Parse a playlist for a single model
Classifies every line as the file header, an entry header, a stream URL,
or metadata belonging to the entry in progress.

@param lines: Iterable[str] Playlist lines, with or without line endings
@param model: CompiledModel Model whose rules decide what is kept
@return PlaylistDocument: Header plus the kept, transformed entries
"""
def parse_playlist(lines: Iterable[str], model: CompiledModel) -> PlaylistDocument:

    # hold the result and the entry in progress
    document = PlaylistDocument()
    fields: ChannelEntry = {}
    dropped = 0

    # loop over each line
    for raw_line in lines:
        line = raw_line.rstrip('\r\n')
        if not line.strip():
            continue

        # first line
        if FILE_PREFIX_PATTERN.match(line):
            if not document.header:
                document.header = line + '\n'

        # extinf lines start a fresh entry, pending metadata is discarded
        elif EXTINF_PREFIX_PATTERN.match(line):
            fields = parse_extinf(line) or {}
            if not fields:
                logger.debug(f"Skipping malformed entry line: {line}")

        # stream url
        elif STREAM_PREFIX_PATTERN.match(line):
            fields['stream'] = line

            # an entry without a name cannot be written back out
            if not fields.get('tvg-name'):
                logger.debug(f"Dropping nameless entry for stream {line}")
                dropped += 1
            elif process_entry(fields, model) is not None:
                document.entries.append(fields)
            else:
                dropped += 1

            # clear the current info for the next stream
            fields = {}

        # remaining lines (metadata)
        else:
            fields['metadata'] = fields.get('metadata', '') + line + '\n'

    # log and return it
    logger.debug(f"Parsed playlist for model '{model.name}': {len(document.entries)} kept, {dropped} dropped")
    return document

"""
Parse a playlist file for a single model

@param path: str|Path Local playlist file
@param model: CompiledModel Model whose rules decide what is kept
@return PlaylistDocument: Header plus the kept, transformed entries
"""
def read_playlist(path: Union[str, Path], model: CompiledModel) -> PlaylistDocument:

    # open it up and stream the lines through the parser, dropping any BOM
    with open(path, 'r', encoding='utf-8-sig', errors='replace') as f:
        return parse_playlist(f, model)
