#!/usr/bin/env python3
"""
API Routes Module

This module defines the REST API endpoints for the M3U Proxy application.
It serves the generated playlists and guides, reports the last run, and
lets clients trigger a refresh.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# imports
import logging
from pathlib import Path
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

# setup the logger
logger = logging.getLogger(__name__)

# setup the api router
router = APIRouter()

"""
Get proxy instance from application state

@param request: Request FastAPI request object
@return M3UProxy: Proxy instance from app state
"""
def get_proxy(request: Request):
    """Get proxy instance from app state"""
    return request.app.state.proxy

"""
Resolve an exported file name safely

@param request: Request FastAPI request object
@param filename: str Requested file name
@param extension: str Required extension
@return Path: Existing file inside the export folder
@throws HTTPException: 404 if the name is invalid or the file is missing
"""
def resolve_export(request: Request, filename: str, extension: str) -> Path:
    proxy = get_proxy(request)
    export_dir = Path(proxy.config.export_folder).resolve()
    target = (export_dir / filename).resolve()

    # only plain files directly inside the export folder
    if target.parent != export_dir or target.suffix != extension or not target.is_file():
        raise HTTPException(status_code=404, detail=f"'{filename}' not found")

    return target

"""
Root endpoint with API information

@return dict: API info
"""
@router.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "M3U Proxy API",
        "version": "1.0.0",
        "endpoints": {
            "status": "/status",
            "playlist": "/playlist/{source}{model}.m3u",
            "epg": "/epg/{source}.xml",
            "refresh": "/refresh"
        }
    }

"""
Get the outcome of the last run

@param request: Request FastAPI request object
@return dict: Per source results of the last run
"""
@router.get("/status")
async def get_status(request: Request):
    """Get service status"""
    proxy = get_proxy(request)
    if not proxy:
        return {"status": "not_initialized"}

    return {
        "status": "running",
        "sources": len(proxy.config.sources),
        "last_run": proxy.last_run.isoformat() if proxy.last_run else None,
        "results": [r.to_dict() for r in proxy.last_results]
    }

"""
Get a generated playlist

@param request: Request FastAPI request object
@param filename: str File name such as "sourcemodel.m3u"
@return FileResponse: Playlist content
@throws HTTPException: 404 if the playlist does not exist
"""
@router.get("/playlist/{filename}")
async def get_playlist(request: Request, filename: str):
    """Get a generated playlist"""
    target = resolve_export(request, filename, ".m3u")
    return FileResponse(target, media_type="audio/x-mpegurl")

"""
Get a generated guide

@param request: Request FastAPI request object
@param filename: str File name such as "source.xml"
@return FileResponse: Guide content
@throws HTTPException: 404 if the guide does not exist
"""
@router.get("/epg/{filename}")
async def get_epg(request: Request, filename: str):
    """Get a generated guide"""
    target = resolve_export(request, filename, ".xml")
    return FileResponse(target, media_type="application/xml")

"""
Rerun every source now

@param request: Request FastAPI request object
@return dict: Per source results of the run
"""
@router.post("/refresh")
async def refresh(request: Request):
    """Rerun every source"""
    proxy = get_proxy(request)
    if not proxy:
        raise HTTPException(status_code=503, detail="Service not initialized")

    logger.info("Refresh requested")
    results = await proxy.run_all()
    return {"results": [r.to_dict() for r in results]}
