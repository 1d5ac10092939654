from __future__ import annotations

import asyncio
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

from m3uproxy.core import M3UProxy
from m3uproxy.models import AppConfig, FilterConfig, ModelConfig, SourceConfig, TransformationConfig
from m3uproxy.services import RetrievalError

PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="news.fr" tvg-name="News HD" group-title="Info",News HD
http://example/news
#EXTINF:-1 tvg-id="sport.fr" tvg-name="Sport HD" group-title="Sports",Sport HD
http://example/sport
"""


def _guide() -> str:
    now = datetime.now(timezone.utc)
    fmt = "%Y%m%d%H%M%S %z"
    start = (now + timedelta(hours=1)).strftime(fmt)
    stop = (now + timedelta(hours=2)).strftime(fmt)
    return (
        "<tv>"
        '<channel id="news.fr"><display-name>News</display-name></channel>'
        '<channel id="sport.fr"><display-name>Sport</display-name></channel>'
        f'<programme channel="news.fr" start="{start}" stop="{stop}"><title>N</title></programme>'
        f'<programme channel="sport.fr" start="{start}" stop="{stop}"><title>S</title></programme>'
        "</tv>"
    )


class FakeRetriever:
    def __init__(self, files: dict[str, Path]) -> None:
        self.files = files
        self.fetched: list[str] = []

    async def fetch(self, url: str, destination) -> Path:
        self.fetched.append(url)
        if url not in self.files:
            raise RetrievalError(f"Failed to load resource: {url}")
        target = Path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(self.files[url], target)
        return target


def _setup(tmp_path: Path, sources: tuple[SourceConfig, ...]) -> tuple[M3UProxy, FakeRetriever]:
    remote = tmp_path / "remote"
    remote.mkdir()
    (remote / "list.m3u").write_text(PLAYLIST, encoding="utf-8")
    (remote / "guide.xml").write_text(_guide(), encoding="utf-8")
    retriever = FakeRetriever(
        {
            "http://example/list.m3u": remote / "list.m3u",
            "http://example/guide.xml": remote / "guide.xml",
        }
    )
    config = AppConfig(
        sources=sources,
        import_folder=str(tmp_path / "in"),
        export_folder=str(tmp_path / "out"),
    )
    return M3UProxy(config, retriever=retriever), retriever


def test_source_produces_one_playlist_per_model_and_guide(tmp_path) -> None:
    source = SourceConfig(
        name="prov",
        m3u="http://example/list.m3u",
        epg="http://example/guide.xml",
        models=(
            ModelConfig(
                name="info",
                filters=(FilterConfig(field="group-title", regex="info"),),
                transformations=(TransformationConfig(field="tvg-id", regex=r"\.fr$", substitution=""),),
            ),
            ModelConfig(name="all"),
        ),
    )
    proxy, _ = _setup(tmp_path, (source,))

    results = asyncio.run(proxy.run_all())

    assert results[0].success
    assert results[0].models_written == ["info", "all"]
    assert results[0].guide_written

    info = (tmp_path / "out" / "provinfo.m3u").read_text(encoding="utf-8")
    assert 'tvg-id="news"' in info
    assert "Sport" not in info
    everything = (tmp_path / "out" / "provall.m3u").read_text(encoding="utf-8")
    assert everything.count("#EXTINF") == 2

    # guide ids come from the first model's filters, before transformations
    guide = (tmp_path / "out" / "prov.xml").read_text(encoding="utf-8")
    assert '<channel id="news.fr">' in guide
    assert 'channel="news.fr"' in guide
    assert "sport.fr" not in guide


def test_failed_source_does_not_affect_others(tmp_path) -> None:
    broken = SourceConfig(name="broken", m3u="http://example/missing.m3u", models=(ModelConfig(name=""),))
    working = SourceConfig(name="ok", m3u="http://example/list.m3u", models=(ModelConfig(name=""),))
    proxy, _ = _setup(tmp_path, (broken, working))

    results = asyncio.run(proxy.run_all())

    assert [r.name for r in results] == ["broken", "ok"]
    assert not results[0].success
    assert "missing.m3u" in results[0].error
    assert results[1].success
    assert (tmp_path / "out" / "ok.m3u").exists()
    assert proxy.last_results == results


def test_retrieval_failure_skips_guide(tmp_path) -> None:
    source = SourceConfig(
        name="prov",
        m3u="http://example/missing.m3u",
        epg="http://example/guide.xml",
        models=(ModelConfig(name=""),),
    )
    proxy, retriever = _setup(tmp_path, (source,))

    result = asyncio.run(proxy.process_source(source))

    assert not result.success
    assert retriever.fetched == ["http://example/missing.m3u"]
    assert not (tmp_path / "out" / "prov.xml").exists()


def test_invalid_pattern_aborts_only_its_source(tmp_path) -> None:
    bad = SourceConfig(
        name="bad",
        m3u="http://example/list.m3u",
        models=(
            ModelConfig(name="good"),
            ModelConfig(name="broken", filters=(FilterConfig(field="tvg-name", regex="(oops"),)),
        ),
    )
    good = SourceConfig(name="good", m3u="http://example/list.m3u", models=(ModelConfig(name=""),))
    proxy, _ = _setup(tmp_path, (bad, good))

    results = asyncio.run(proxy.run_all())

    assert not results[0].success
    assert "oops" in results[0].error
    assert not (tmp_path / "out" / "badgood.m3u").exists()
    assert results[1].success


def test_guide_without_models_keeps_every_channel(tmp_path) -> None:
    source = SourceConfig(name="prov", m3u="http://example/list.m3u", epg="http://example/guide.xml")
    proxy, _ = _setup(tmp_path, (source,))

    result = asyncio.run(proxy.process_source(source))

    assert result.success
    guide = (tmp_path / "out" / "prov.xml").read_text(encoding="utf-8")
    assert guide.count("<programme") == 2
