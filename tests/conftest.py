"""Shared test fixtures for OdinSource."""

from pathlib import Path

import pytest

from odinsource import paths
from odinsource.catalog import Catalog
from odinsource.content import ContentStore
from odinsource.logs import reset_logging

FAKE_PDF = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Point every OdinSource path at the temp dir and drop logging handlers."""
    home = tmp_path / "home"
    monkeypatch.setenv(paths.HOME_ENV, str(home))
    monkeypatch.delenv(paths.STORE_ENV, raising=False)
    monkeypatch.delenv(paths.DB_ENV, raising=False)
    yield home
    reset_logging()


@pytest.fixture
def catalog(tmp_path: Path) -> Catalog:
    """Empty catalog with its own database and content store."""
    store = ContentStore(tmp_path / "store", "pdf")
    store.ensure()
    cat = Catalog(db_path=tmp_path / "catalog.db", store=store)
    cat.init()
    return cat


@pytest.fixture
def make_pdf(tmp_path: Path):
    """Factory writing a small PDF-looking file under tmp_path/src/."""
    src = tmp_path / "src"
    src.mkdir(exist_ok=True)

    def _make(name: str = "paper.pdf", data: bytes = FAKE_PDF) -> Path:
        p = src / name
        p.write_bytes(data)
        return p

    return _make
