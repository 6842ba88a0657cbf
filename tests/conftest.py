from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture()
def photos_root(tmp_path):
    d = tmp_path / "photos"
    d.mkdir()
    return d


@pytest.fixture()
def public_dir(tmp_path):
    d = tmp_path / "public"
    d.mkdir()
    (d / "index.html").write_text("<h1>slideshow</h1>")
    return d


@pytest.fixture()
def make_app(tmp_path, photos_root, public_dir, monkeypatch):
    """(Re)import app.py against a temporary settings file."""

    def _make(**overrides):
        cfg = {
            "photosPath": str(photos_root),
            "gridColumns": 3,
            "gridRows": 2,
            "minDuration": 5,
            "maxDuration": 15,
            "transitionDuration": 1,
        }
        cfg.update(overrides)
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps(cfg))
        monkeypatch.setenv("SETTINGS_PATH", str(settings_file))
        monkeypatch.setenv("PUBLIC_DIR", str(public_dir))
        if "app" in sys.modules:
            return importlib.reload(sys.modules["app"])
        return importlib.import_module("app")

    return _make


@pytest.fixture()
def app_module(make_app):
    return make_app()


@pytest.fixture()
def client(app_module):
    with TestClient(app_module.app) as test_client:
        yield test_client


@pytest.fixture()
def locked_module(make_app):
    return make_app(password="secret")


@pytest.fixture()
def locked_client(locked_module):
    with TestClient(locked_module.app) as test_client:
        yield test_client
