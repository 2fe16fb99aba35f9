# scripts/sync_vectors.py
"""
Push pending catalog changes to the Pinecone index.

Usage: python scripts/sync_vectors.py [--all]
"""
import argparse
import logging
import sys

from catalog_api.config import Settings
from catalog_api.db import Base, make_engine, make_sessionmaker
from catalog_api.embeddings import build_embedder
from catalog_api.errors import CatalogError
from catalog_api.pinecone_client import PineconeVectorIndex
from catalog_api.vector_sync import drain_outbox, queue_all

logger = logging.getLogger("sync_vectors")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Sync product embeddings to Pinecone")
    parser.add_argument("--all", action="store_true", help="Re-embed every product")
    parser.add_argument("--batch-size", type=int, default=50)
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(message)s")
    if not settings.semantic_enabled:
        logger.error("❌ PINECONE_API_KEY is required")
        return 1

    vector_index = PineconeVectorIndex(
        settings.pinecone_api_key, settings.pinecone_index, timeout=settings.external_timeout
    )
    if vector_index.ensure_index(settings.embed_dimension):
        logger.info(f"Index '{settings.pinecone_index}' created")
    embedder = build_embedder(settings)

    engine = make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    with make_sessionmaker(engine)() as session:
        if args.all:
            logger.info(f"{queue_all(session)} products queued for re-embedding")
        try:
            upserted, deleted = drain_outbox(
                session, embedder, vector_index,
                batch_size=args.batch_size,
                timeout=settings.external_timeout,
                retries=settings.external_retries,
                backoff=settings.external_backoff,
            )
        except CatalogError as e:
            logger.error(f"❌ Sync aborted, outbox kept for the next run: {e.message}")
            return 1
    logger.info(f"✅ Sync done: {upserted} upserted, {deleted} deleted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
