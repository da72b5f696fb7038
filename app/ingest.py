# app/ingest.py
# Offline ingestion: fetch the configured pages and load them into Neo4j without
# starting the API.  `python -m app.ingest --dry-run` only fetches and chunks.
import argparse

from app.config import ConfigResolver
from app.errors import KarlChatError, NoContentLoaded
from app.factory import build_pipeline, build_store


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", action="append", dest="urls", help="page to ingest (repeatable); defaults to DOCUMENT_URLS")
    ap.add_argument("--chunk-size", type=int, default=None)
    ap.add_argument("--chunk-overlap", type=int, default=None)
    ap.add_argument("--dry-run", action="store_true", help="fetch and chunk only, do not write to Neo4j")
    args = ap.parse_args(argv)

    resolver = ConfigResolver()
    resolver.validate()
    settings = resolver.settings()
    overrides = {}
    if args.chunk_size is not None:
        overrides["chunk_size"] = args.chunk_size
    if args.chunk_overlap is not None:
        overrides["chunk_overlap"] = args.chunk_overlap
    if overrides:
        settings = settings.model_copy(update=overrides)

    urls = args.urls or settings.document_urls
    store = None if args.dry_run else build_store(settings)
    pipeline = build_pipeline(settings, store=store)

    print(f"[ingest] {len(urls)} URLs, chunk_size={settings.chunk_size} overlap={settings.chunk_overlap}")
    try:
        result = pipeline.ingest(urls)
    except NoContentLoaded as exc:
        print(f"[fail] {exc.message}")
        return 1
    except KarlChatError as exc:
        print(f"[fail] {exc.message}")
        return 2
    finally:
        if store is not None:
            store.close()

    for url, err in result.per_url_errors.items():
        print(f"[skip] {url} -> {err}")
    target = "(dry run)" if args.dry_run else f"-> Neo4j index {settings.neo4j_index_name}"
    print(f"[done] {result.pages_loaded} pages, {len(result.chunks)} chunks {target}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
