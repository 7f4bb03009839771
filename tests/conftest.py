"""Shared fixtures: every test starts from the bundled configuration."""

import json
import shutil

import pytest

from ramp_fitment.config import get_settings
from ramp_fitment.services.config_store import DEFAULT_CONFIG_DIR, get_config
from ramp_fitment.services.flow_sync import get_flow_sync_store


def _clear_caches():
    get_settings.cache_clear()
    get_config.cache_clear()
    get_flow_sync_store.cache_clear()


@pytest.fixture(autouse=True)
def bundled_config(monkeypatch):
    for var in ("FITMENT_CONFIG_DIR", "API_ADMIN_KEY", "SYNC_TTL_SECONDS"):
        monkeypatch.delenv(var, raising=False)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """A writable copy of the bundled documents, selected via FITMENT_CONFIG_DIR."""
    target = tmp_path / "config"
    shutil.copytree(DEFAULT_CONFIG_DIR, target)
    monkeypatch.setenv("FITMENT_CONFIG_DIR", str(target))
    _clear_caches()
    return target


@pytest.fixture
def edit_document(config_dir):
    """Rewrite one JSON document in the copied config directory."""

    def _edit(filename, mutate):
        path = config_dir / filename
        data = json.loads(path.read_text(encoding="utf-8"))
        mutate(data)
        path.write_text(json.dumps(data), encoding="utf-8")
        get_config.cache_clear()
        return path

    return _edit
