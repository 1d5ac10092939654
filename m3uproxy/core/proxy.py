#!/usr/bin/env python3
"""
M3U Proxy Core Module

This module contains the main M3UProxy class that orchestrates the
processing of every configured source: fetching the playlist, producing
one filtered playlist per model, and producing the filtered guide.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import asyncio, logging, aiohttp
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set
from m3uproxy.models import AppConfig, SourceConfig, SourceResult
from m3uproxy.services import (
    CompiledModel,
    Retriever,
    compile_model,
    read_playlist,
    write_playlist,
    write_guide,
)

# setup the logger
logger = logging.getLogger(__name__)

"""
Main application orchestrator class

Runs one task per source. Sources are isolated from each other: a failure
in one is logged and recorded in its SourceResult, never raised.
"""
class M3UProxy:
    """Main application class"""

    """
    Initialize the M3UProxy

    @param config: AppConfig Application configuration object
    @param retriever: Retriever|None Retriever to use instead of an aiohttp backed one
    """
    def __init__(self, config: AppConfig, retriever: Optional[Retriever] = None):

        # hold our class options
        self.config = config
        self.session = None
        self.retriever = retriever
        self.refresh_task = None
        self.last_results: List[SourceResult] = []
        self.last_run: Optional[datetime] = None
        self._run_lock = asyncio.Lock()

    """
    Initialize the application
    Creates the HTTP session and the retriever unless one was supplied.

    @return None
    """
    async def initialize(self):

        # a retriever was handed to us, nothing to set up
        if self.retriever is not None:
            return

        # setup the client timeout
        timeout = aiohttp.ClientTimeout(
            total=self.config.request_timeout,
            connect=30
        )

        # setup the session and the retriever on top of it
        self.session = aiohttp.ClientSession(
            timeout=timeout,
            headers={"User-Agent": self.config.user_agent}
        )
        self.retriever = Retriever(self.session, verify_ssl=self.config.verify_ssl)

    """
    Cleanup resources
    Cancels the background refresh task and closes the HTTP session.

    @return None
    """
    async def cleanup(self):

        # if this is a refresher task
        if self.refresh_task:

            # cancel it and ignore the cancellation error
            self.refresh_task.cancel()
            try:
                await self.refresh_task
            except asyncio.CancelledError:
                pass
            self.refresh_task = None

        # if we have a session... close it
        if self.session:
            await self.session.close()
            self.session = None

    """
    Path helpers for the import and export folders
    """
    def import_path(self, source: SourceConfig, extension: str) -> Path:
        return Path(self.config.import_folder) / f"{source.name}.{extension}"

    def playlist_export_path(self, source: SourceConfig, model_name: str) -> Path:
        return Path(self.config.export_folder) / f"{source.name}{model_name}.m3u"

    def guide_export_path(self, source: SourceConfig) -> Path:
        return Path(self.config.export_folder) / f"{source.name}.xml"

    """
    Parse, filter, transform and write the playlist for one model
    Parsing is synchronous, so it runs in a worker thread with its own
    parse pass over the file.

    @param source: SourceConfig Owning source
    @param model: CompiledModel Compiled model
    @param playlist_path: Path Downloaded playlist
    @return int: Number of entries written
    """
    async def process_model(self, source: SourceConfig, model: CompiledModel, playlist_path: Path) -> int:

        logger.debug(f"Processing model {source.name}{model.name}")

        # parse, then write it out
        document = await asyncio.to_thread(read_playlist, playlist_path, model)
        target = self.playlist_export_path(source, model.name)
        await asyncio.to_thread(write_playlist, document, target)

        logger.info(f"Wrote {len(document.entries)} streams to {target}")
        return len(document.entries)

    """
    Collect the channel ids surviving the first model's filters
    Transformations are not applied, so the ids match the guide's ids.

    @param source: SourceConfig Owning source
    @param playlist_path: Path Downloaded playlist
    @return Set[str]: Non-empty tvg-id values
    """
    def allowed_channel_ids(self, source: SourceConfig, playlist_path: Path) -> Set[str]:

        # only the first model's filters are used
        if source.models:
            first = compile_model(source.models[0])
            model = CompiledModel(name=first.name, filters=first.filters)
        else:
            model = CompiledModel(name='')

        document = read_playlist(playlist_path, model)
        return {entry['tvg-id'] for entry in document.entries if entry.get('tvg-id')}

    """
    Process a single source end to end

    @param source: SourceConfig Source to process
    @return SourceResult: Outcome of the run, failures included
    """
    async def process_source(self, source: SourceConfig) -> SourceResult:

        # setup the result
        result = SourceResult(name=source.name)
        logger.info(f"Processing source {source.name}")

        # try to run the pipeline
        try:

            # fetch the playlist and compile the models before doing any work
            playlist_path = await self.retriever.fetch(source.m3u, self.import_path(source, 'm3u'))
            models = [compile_model(m) for m in source.models]

            # run every model concurrently
            outcomes = await asyncio.gather(
                *(self.process_model(source, model, playlist_path) for model in models),
                return_exceptions=True
            )
            for model, outcome in zip(models, outcomes):
                if isinstance(outcome, BaseException):
                    raise outcome
                result.models_written.append(model.name)

            # now the guide, if there is one
            if source.epg:
                guide_path = await self.retriever.fetch(source.epg, self.import_path(source, 'xml'))
                allowed = await asyncio.to_thread(self.allowed_channel_ids, source, playlist_path)
                target = self.guide_export_path(source)
                channels, programmes = await asyncio.to_thread(write_guide, guide_path, allowed, target)
                result.guide_written = True
                logger.info(f"Wrote {channels} channels and {programmes} programmes to {target}")

            result.success = True

        # whoops... log it, the other sources carry on
        except Exception as e:
            logger.error(f"Failed to process source {source.name}: {e}")
            result.error = str(e)

        # when all is said and done...
        finally:
            result.finished_at = datetime.now()

        return result

    """
    Process every configured source concurrently

    @return list: One SourceResult per source, in configuration order
    """
    async def run_all(self) -> List[SourceResult]:

        # make sure runs never overlap
        async with self._run_lock:

            # one task per source
            outcomes = await asyncio.gather(
                *(self.process_source(source) for source in self.config.sources),
                return_exceptions=True
            )

            # process_source records its own failures, but be sure
            results = []
            for source, outcome in zip(self.config.sources, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error(f"Unexpected failure for source {source.name}: {outcome}")
                    outcome = SourceResult(name=source.name, error=str(outcome), finished_at=datetime.now())
                results.append(outcome)

            # hold and log the summary
            self.last_results = results
            self.last_run = datetime.now()
            failed = [r.name for r in results if not r.success]
            logger.info(f"Processed {len(results) - len(failed)}/{len(results)} sources successfully")
            if failed:
                logger.warning(f"Failed sources: {', '.join(failed)}")

            return results

    """
    Start the background refresh loop

    @return None
    """
    def start_refresh_loop(self):
        if self.refresh_task is None:
            self.refresh_task = asyncio.create_task(self._refresh_loop())

    """
    Background task to refresh sources
    Reruns every source each refresh_interval seconds.

    @return None
    """
    async def _refresh_loop(self):

        # while we're still looping...
        while True:

            # try to refresh after the interval
            try:
                await asyncio.sleep(self.config.refresh_interval)
                await self.run_all()

            # whoops, we are in a cancelation...
            except asyncio.CancelledError:
                break

            # whoopsie... there's an error in the loop
            except Exception as e:
                logger.error(f"Error in refresh loop: {e}")
