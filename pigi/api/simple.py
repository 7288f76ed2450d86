"""
PEP 503 "simple" repository endpoints.

Package names come from the registry; the files listed under a package are
the release assets of the GitHub repository it maps to, and downloads are
streamed straight from GitHub.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from fastapi.templating import Jinja2Templates
from starlette.background import BackgroundTask

from pigi.core.dependencies import get_app_state
from pigi.core.state import AppState
from pigi.domain.models import Repository
from pigi.services.authentication import resolve_credential
from pigi.services.github import GithubClient, UpstreamError

logger = logging.getLogger(__name__)
router = APIRouter()

_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))

NOT_FOUND_DETAIL = "Page not found"
UPSTREAM_ERROR_DETAIL = "Error during http request"


def _get_repository(package_name: str, state: AppState) -> Repository:
    repository = state.registry.get(package_name)
    if repository is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)
    return repository


# ---------------------------------------------------------------------------
# 1. GET /simple/  (index of all packages)
# ---------------------------------------------------------------------------

@router.get("/simple", include_in_schema=False)
async def simple_redirect() -> RedirectResponse:
    return RedirectResponse(url="/simple/", status_code=status.HTTP_308_PERMANENT_REDIRECT)


@router.get("/simple/", response_class=HTMLResponse)
async def simple_index(
    request: Request,
    state: AppState = Depends(get_app_state),
) -> HTMLResponse:
    """
    List every registered package, each linking to its own page.
    """
    return templates.TemplateResponse(
        request,
        "simple.html",
        {"packages": state.registry.all()},
    )


# ---------------------------------------------------------------------------
# 2. GET /simple/{package}/  (files of one package)
# ---------------------------------------------------------------------------

@router.get("/simple/{package_name}", include_in_schema=False)
async def package_redirect(package_name: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"/simple/{quote(package_name, safe='')}/",
        status_code=status.HTTP_308_PERMANENT_REDIRECT,
    )


@router.get("/simple/{package_name}/", response_class=HTMLResponse)
async def package_index(
    package_name: str,
    request: Request,
    state: AppState = Depends(get_app_state),
) -> HTMLResponse:
    """
    List the release assets of the package's repository as installable files.
    """
    repository = _get_repository(package_name, state)
    token = resolve_credential(request.headers, state.settings.github_token)

    try:
        async with GithubClient(token, base_url=state.settings.github_api_url) as client:
            assets = await client.list_assets(repository.owner, repository.name)
    except UpstreamError:
        logger.error("Could not list assets for package %s", package_name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=UPSTREAM_ERROR_DETAIL,
        )

    logger.info("Listed %d files for package %s", len(assets), package_name)
    return templates.TemplateResponse(
        request,
        "package.html",
        {
            "package_name": package_name,
            "github_org": repository.owner,
            "github_repo": repository.name,
            "assets": assets,
        },
    )


# ---------------------------------------------------------------------------
# 3. GET /simple/{package}/{asset_id}/{asset_name}  (download)
# ---------------------------------------------------------------------------

@router.get("/simple/{package_name}/{asset_id}/{asset_name}")
async def download_asset(
    package_name: str,
    asset_id: str,
    asset_name: str,
    request: Request,
    state: AppState = Depends(get_app_state),
) -> StreamingResponse:
    """
    Stream a release asset from GitHub to the installer.

    The asset is resolved by its numeric id alone; ``asset_name`` only keeps
    the URL readable (installers derive the file name from it).
    """
    repository = _get_repository(package_name, state)
    if not (asset_id.isascii() and asset_id.isdigit()):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)

    token = resolve_credential(request.headers, state.settings.github_token)

    client = GithubClient(token, base_url=state.settings.github_api_url)
    stream = None
    try:
        stream = await client.open_asset_stream(repository.owner, repository.name, int(asset_id))
    except UpstreamError:
        logger.error("Could not download asset %s of package %s", asset_id, package_name)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=UPSTREAM_ERROR_DETAIL,
        )
    finally:
        # On success the stream owns the client and closes it when done.
        if stream is None:
            await client.aclose()

    logger.info("Streaming asset %s of package %s", asset_id, package_name)
    return StreamingResponse(
        stream.iter_bytes(),
        headers=stream.headers,
        media_type=stream.media_type,
        background=BackgroundTask(stream.aclose),
    )
