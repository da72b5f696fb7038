import pytest

import app.ingest as ingest_cli
from app.config import ConfigResolver
from rag.ingest_lib.pipeline import IngestionPipeline

from conftest import BAD_URL, GOOD_URL, StubFetcher


@pytest.fixture()
def offline(monkeypatch, tmp_path):
    """Run the CLI against tmp config and canned pages."""
    base = tmp_path / "proj" / "app"
    base.mkdir(parents=True)
    fetcher = StubFetcher({GOOD_URL: "Ollama " * 100})
    built = {}

    def fake_pipeline(settings, store=None):
        built["settings"] = settings
        built["store"] = store
        return IngestionPipeline(fetch=fetcher, store=store, chunk_size=settings.chunk_size,
                                 chunk_overlap=settings.chunk_overlap, max_workers=1)

    def fake_store(settings):
        raise AssertionError("dry run must not build a store")

    monkeypatch.setattr(ingest_cli, "ConfigResolver", lambda: ConfigResolver(base_dir=base, env={}, env_file=None))
    monkeypatch.setattr(ingest_cli, "build_pipeline", fake_pipeline)
    monkeypatch.setattr(ingest_cli, "build_store", fake_store)
    return built


def test_dry_run_fetches_and_chunks(offline, capsys):
    code = ingest_cli.main(["--url", GOOD_URL, "--url", BAD_URL, "--chunk-size", "200", "--chunk-overlap", "50", "--dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert offline["store"] is None
    assert offline["settings"].chunk_size == 200
    assert f"[skip] {BAD_URL}" in out
    assert "[done] 1 pages" in out and "(dry run)" in out


def test_nothing_loaded_exits_1(offline, capsys):
    code = ingest_cli.main(["--url", BAD_URL, "--dry-run"])
    assert code == 1
    assert "No documents were successfully loaded" in capsys.readouterr().out
