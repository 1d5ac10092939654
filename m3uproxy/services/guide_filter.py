#!/usr/bin/env python3
"""
Guide Filter Module

This module streams an XMLTV guide and keeps only the channels in an
allow-list, plus their programmes that fall inside a rolling window:
starting less than 48 hours from now and finished no more than 1 hour ago.
Nodes are cleared as soon as they are handled, so large guides are never
held in memory.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import os, gzip, logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Set, TextIO, Tuple, Union

# setup the logger
logger = logging.getLogger(__name__)

# fixed output framing
GUIDE_PREAMBLE = '<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE tv SYSTEM "xmltv.dtd">\n<tv>\n'
GUIDE_CLOSING = '</tv>\n'

# retention window, in hours relative to now
MAX_HOURS_AHEAD = 48
MAX_HOURS_PAST = 1

# xmltv timestamps: 20240101120000 +0000
TIMESTAMP_FORMAT = '%Y%m%d%H%M%S %z'

# gzip magic number
_GZIP_MAGIC = b'\x1f\x8b'

"""
Parse an XMLTV timestamp

@param value: str Timestamp such as "20240101120000 +0100"
@return datetime|None: Offset aware datetime, or None when unparseable
"""
def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    except ValueError:
        return None

"""
Hours between now and a timestamp, negative when in the past

@param moment: datetime Offset aware datetime
@param now: datetime Offset aware reference time
@return float: Elapsed hours
"""
def hours_from_now(moment: datetime, now: datetime) -> float:
    return (moment - now).total_seconds() / 3600

"""
Check if a channel node should be kept

@param node: Element The <channel> node
@param allowed_ids: Set[str] Channel identifiers to keep
@return bool: True when the id is non-empty and allowed
"""
def keep_channel(node: ET.Element, allowed_ids: Set[str]) -> bool:
    channel_id = node.get('id', '')
    return channel_id != '' and channel_id in allowed_ids

"""
Check if a programme node should be kept
Programmes with a missing or unparseable start/stop are excluded.

@param node: Element The <programme> node
@param allowed_ids: Set[str] Channel identifiers to keep
@param now: datetime Offset aware reference time
@return bool: True when allowed and inside the window
"""
def keep_programme(node: ET.Element, allowed_ids: Set[str], now: datetime) -> bool:

    # is the channel one of ours
    if node.get('channel') not in allowed_ids:
        return False

    # parse both ends of the programme
    start = parse_timestamp(node.get('start'))
    stop = parse_timestamp(node.get('stop'))
    if start is None or stop is None:
        logger.debug(f"Excluding programme with bad timestamps on {node.get('channel')}: {node.get('start')!r} / {node.get('stop')!r}")
        return False

    # starts in less than 48 hours and finished at most 1 hour ago
    return (hours_from_now(start, now) < MAX_HOURS_AHEAD
            and hours_from_now(stop, now) >= -MAX_HOURS_PAST)

"""
Serialize a node without the whitespace that followed it in the source

@param node: Element Node to serialize
@return str: XML text of the node
"""
def _to_xml(node: ET.Element) -> str:
    node.tail = None
    return ET.tostring(node, encoding='unicode')

"""
Filter a guide document

@param source: BinaryIO|str Readable binary stream or file name of the guide
@param allowed_ids: Iterable[str] Channel identifiers to keep
@param out: TextIO Writable text stream for the filtered guide
@param now: datetime|None Reference time, defaults to the current time
@return tuple: (channels kept, programmes kept)
"""
def filter_guide(
    source: Union[BinaryIO, str],
    allowed_ids: Iterable[str],
    out: TextIO,
    now: Optional[datetime] = None
) -> Tuple[int, int]:

    # fix the reference time once, when filtering starts
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.astimezone()

    # hold the allow list and the counters
    allowed = set(allowed_ids)
    channels = programmes = 0
    root = None
    depth = 0

    # write the preamble
    out.write(GUIDE_PREAMBLE)

    # stream the document
    for event, node in ET.iterparse(source, events=('start', 'end')):

        # track where we are in the tree
        if event == 'start':
            if root is None:
                root = node
            depth += 1
            continue
        depth -= 1

        # only direct children of the root are considered
        if depth != 1:
            continue

        if node.tag == 'channel':
            if keep_channel(node, allowed):
                out.write(_to_xml(node))
                out.write('\n')
                channels += 1
        elif node.tag == 'programme':
            if keep_programme(node, allowed, now):
                out.write(_to_xml(node))
                out.write('\n')
                programmes += 1

        # handled, drop it
        root.clear()

    # close it up
    out.write(GUIDE_CLOSING)
    return channels, programmes

"""
Open a guide file, transparently handling gzip compression

@param path: Path Local guide file
@return BinaryIO: Readable binary stream
"""
def open_guide(path: Path) -> BinaryIO:
    with open(path, 'rb') as f:
        magic = f.read(2)
    if magic == _GZIP_MAGIC:
        return gzip.open(path, 'rb')
    return open(path, 'rb')

"""
Filter a guide file into an output file

@param source_path: str|Path Downloaded guide
@param allowed_ids: Iterable[str] Channel identifiers to keep
@param target_path: str|Path Destination file
@param now: datetime|None Reference time, defaults to the current time
@return tuple: (channels kept, programmes kept)
"""
def write_guide(
    source_path: Union[str, Path],
    allowed_ids: Iterable[str],
    target_path: Union[str, Path],
    now: Optional[datetime] = None
) -> Tuple[int, int]:

    # prepare destination
    target = Path(target_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_target = target.with_name(target.name + '.tmp')

    # filter it into the temporary file
    try:
        with open_guide(Path(source_path)) as src, open(tmp_target, 'w', encoding='utf-8', newline='\n') as out:
            counts = filter_guide(src, allowed_ids, out, now=now)

    # whoops... don't leave a partial file behind
    except Exception:
        tmp_target.unlink(missing_ok=True)
        raise

    # and move it over the target
    os.replace(tmp_target, target)
    logger.debug(f"Wrote {counts[0]} channels and {counts[1]} programmes to {target}")
    return counts
