#!/usr/bin/env python3
import sys
import asyncio
import logging
import argparse
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from m3uproxy import __version__
from m3uproxy.config import load_config
from m3uproxy.models import AppConfig, SourceResult
from m3uproxy.core import M3UProxy

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(config: AppConfig, proxy: Optional[M3UProxy] = None) -> tuple[FastAPI, M3UProxy]:
    """Create FastAPI app and proxy instance"""
    proxy_instance = proxy or M3UProxy(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await proxy_instance.initialize()
        await proxy_instance.run_all()
        proxy_instance.start_refresh_loop()
        yield
        await proxy_instance.cleanup()

    app = FastAPI(
        title="M3U Proxy",
        description="Filtered M3U playlists and XMLTV guides per source and model",
        version=__version__,
        lifespan=lifespan
    )

    app.state.proxy = proxy_instance

    from m3uproxy.api.routes import router
    app.include_router(router)

    return app, proxy_instance


async def run_once(config: AppConfig) -> List[SourceResult]:
    """Process every source a single time"""
    proxy = M3UProxy(config)
    await proxy.initialize()
    try:
        return await proxy.run_all()
    finally:
        await proxy.cleanup()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="M3U playlist and XMLTV guide proxy")
    parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file"
    )
    parser.add_argument("--serve", action="store_true", help="Serve outputs over HTTP and refresh them periodically")
    parser.add_argument("--host", help="Override bind host")
    parser.add_argument("--port", type=int, help="Override bind port")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)

    logging.getLogger().setLevel(getattr(logging, config.log_level.upper()))

    if not args.serve:
        results = asyncio.run(run_once(config))
        sys.exit(0 if all(r.success for r in results) else 1)

    host = args.host or config.bind_host
    port = args.port or config.bind_port

    try:
        app, proxy = create_app(config)

        logger.info(f"Starting server on {host}:{port}")
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_level=config.log_level.lower()
        )
    except Exception as e:
        logger.error(f"Failed to start: {e}")
        raise


if __name__ == "__main__":
    main()
