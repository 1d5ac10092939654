from __future__ import annotations

import gzip
import io
from datetime import datetime, timedelta, timezone

from m3uproxy.services.guide_filter import (
    GUIDE_CLOSING,
    GUIDE_PREAMBLE,
    filter_guide,
    parse_timestamp,
    write_guide,
)

NOW = datetime(2024, 1, 1, 2, 0, 0, tzinfo=timezone.utc)

GUIDE = b"""<?xml version="1.0" encoding="UTF-8"?>
<tv generator-info-name="test">
  <channel id="1">
    <display-name>News</display-name>
  </channel>
  <channel id="">
    <display-name>Nameless</display-name>
  </channel>
  <programme channel="1" start="20240101120000 +0000" stop="20240101130000 +0000">
    <title lang="en">Midday &amp; More</title>
  </programme>
</tv>
"""


def _stamp(moment: datetime) -> str:
    return moment.strftime("%Y%m%d%H%M%S %z")


def _run(data: bytes, allowed: list[str]) -> str:
    out = io.StringIO()
    filter_guide(io.BytesIO(data), allowed, out, now=NOW)
    return out.getvalue()


def _programme_kept(start: datetime, stop: datetime) -> bool:
    data = (
        f'<tv><programme channel="1" start="{_stamp(start)}" stop="{_stamp(stop)}">'
        "<title>x</title></programme></tv>"
    ).encode()
    return "<programme" in _run(data, ["1"])


def test_allowed_channel_and_programme_are_kept() -> None:
    output = _run(GUIDE, ["1"])

    assert output.startswith(GUIDE_PREAMBLE)
    assert output.endswith(GUIDE_CLOSING)
    assert '<channel id="1">' in output
    assert "Nameless" not in output
    assert 'channel="1"' in output
    assert "Midday &amp; More" in output
    assert "generator-info-name" not in output


def test_not_allowed_channel_is_excluded() -> None:
    assert _run(GUIDE, ["2"]) == GUIDE_PREAMBLE + GUIDE_CLOSING


def test_empty_channel_id_never_matches() -> None:
    assert "Nameless" not in _run(GUIDE, [""])


def test_nodes_keep_document_order() -> None:
    data = b"""<tv>
<programme channel="b" start="20240101030000 +0000" stop="20240101040000 +0000"/>
<channel id="a"/>
<channel id="b"/>
<programme channel="a" start="20240101030000 +0000" stop="20240101040000 +0000"/>
</tv>"""
    output = _run(data, ["a", "b"])
    body = output[len(GUIDE_PREAMBLE):-len(GUIDE_CLOSING)].splitlines()
    assert body == [
        '<programme channel="b" start="20240101030000 +0000" stop="20240101040000 +0000" />',
        '<channel id="a" />',
        '<channel id="b" />',
        '<programme channel="a" start="20240101030000 +0000" stop="20240101040000 +0000" />',
    ]


def test_start_window_boundary() -> None:
    stop = NOW + timedelta(hours=50)
    assert not _programme_kept(NOW + timedelta(hours=48), stop)
    assert _programme_kept(NOW + timedelta(hours=47, minutes=59), stop)


def test_stop_window_boundary() -> None:
    start = NOW - timedelta(hours=3)
    assert _programme_kept(start, NOW - timedelta(hours=1))
    assert not _programme_kept(start, NOW - timedelta(hours=1, minutes=1))


def test_offsets_are_honoured() -> None:
    # 49:00 local at +0200 is 47:00 after NOW in UTC
    start = datetime(2024, 1, 3, 3, 0, tzinfo=timezone(timedelta(hours=2)))
    assert _programme_kept(start, start + timedelta(hours=1))


def test_unparseable_timestamp_excludes_programme() -> None:
    data = b'<tv><programme channel="1" start="tomorrow" stop="20240101040000 +0000"/></tv>'
    assert "<programme" not in _run(data, ["1"])
    data = b'<tv><programme channel="1" start="20240101030000 +0000"/></tv>'
    assert "<programme" not in _run(data, ["1"])


def test_parse_timestamp() -> None:
    parsed = parse_timestamp("20240101120000 -0130")
    assert parsed == datetime(2024, 1, 1, 13, 30, tzinfo=timezone.utc)
    assert parse_timestamp("20240101120000") is None
    assert parse_timestamp(None) is None


def test_write_guide_reads_gzip(tmp_path) -> None:
    source = tmp_path / "guide.xml"
    source.write_bytes(gzip.compress(GUIDE))
    target = tmp_path / "out" / "source.xml"

    counts = write_guide(source, {"1"}, target, now=NOW)

    assert counts == (1, 1)
    assert '<channel id="1">' in target.read_text(encoding="utf-8")
