"""API routes exposing archive progress read from the checkpoint document."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from sitearchive.checkpoint import CheckpointStore
from sitearchive.errors import CheckpointError
from sitearchive.models import CheckpointDocument, Site
from sitearchive.storage import site_dir_name

logger = logging.getLogger(__name__)

router = APIRouter()


class SiteProgress(BaseModel):
    url: str
    name: str
    title: str
    fetch_success: bool
    images_total: int
    images_fetched: int


class SitesResponse(BaseModel):
    checkpoint: str
    sites: List[SiteProgress] = Field(default_factory=list)


def load_document(request: Request) -> CheckpointDocument:
    """Load the checkpoint configured on the application."""

    path = request.app.state.checkpoint_path
    try:
        return CheckpointStore(path).load(allow_empty=True)
    except CheckpointError as exc:
        logger.warning("Failed to load checkpoint %s: %s", path, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _progress(site: Site) -> SiteProgress:
    return SiteProgress(
        url=site.url,
        name=site_dir_name(site.url),
        title=site.title,
        fetch_success=site.fetch_success,
        images_total=len(site.images),
        images_fetched=site.count_fetched_images(),
    )


@router.get("/sites", response_model=SitesResponse)
async def list_sites(request: Request) -> SitesResponse:
    """Return archive progress for every site in the checkpoint."""

    document = load_document(request)
    return SitesResponse(
        checkpoint=str(request.app.state.checkpoint_path),
        sites=[_progress(site) for site in document.sites],
    )


@router.get("/sites/{name}", response_model=Site)
async def retrieve_site(name: str, request: Request) -> Site:
    """Return the checkpoint record of the site archived under ``name``."""

    document = load_document(request)
    for site in document.sites:
        if site_dir_name(site.url) == name:
            return site
    raise HTTPException(status_code=404, detail=f"No site is archived under '{name}'")
