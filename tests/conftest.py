from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from services.scraper import build_default_scraper
from settings import get_settings
from storage.influx import build_default_sink

VALID_CONFIG = """
[api]
url = "https://parking.test/api/list"
scraping_interval_secs = 30

[influxdb]
url = "http://influx.test:8086"
org = "org"
bucket = "parking"
token = "secret"
"""


def _clear_caches() -> None:
    for cache in (get_settings, build_default_sink, build_default_scraper):
        cache.cache_clear()


@pytest.fixture(autouse=True)
def clear_factory_caches() -> Iterator[None]:
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture()
def config_file(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "default.toml"
    path.write_text(VALID_CONFIG)
    monkeypatch.setenv("MSPARKING_CONFIG_PATH", str(path))
    return path
