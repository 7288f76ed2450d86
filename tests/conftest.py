"""Shared fixtures: a registry file on disk, settings, the app and a mocked GitHub."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import respx
from fastapi.testclient import TestClient

from pigi.core.config import Settings
from pigi.main import create_app

if TYPE_CHECKING:
    from pathlib import Path

    from fastapi import FastAPI

GITHUB_API = "https://api.github.com"

REGISTRY_DOCUMENT = {
    "widgets": {"owner": "acme", "name": "widgets"},
    "Gadgets": {"owner": "acme", "name": "gadgets-py"},
}


@pytest.fixture()
def registry_file(tmp_path: Path) -> Path:
    path = tmp_path / "repos.json"
    path.write_text(json.dumps(REGISTRY_DOCUMENT), encoding="utf-8")
    return path


@pytest.fixture()
def settings(registry_file: Path) -> Settings:
    """Settings without a fallback token."""
    return Settings(repos_config_path=str(registry_file))


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture()
def client(app: FastAPI):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def github():
    """respx router standing in for api.github.com.

    Any request to an unmocked URL fails the test.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
