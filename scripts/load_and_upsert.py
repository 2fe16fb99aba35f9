# scripts/load_and_upsert.py
"""
Load catalog items from a JSON or CSV file into the database.

Rows go through CatalogStore, so the keyword index and the vector outbox are
filled exactly as if the products had been created through the API. Run
scripts/sync_vectors.py afterwards to push embeddings to Pinecone.

Usage: python scripts/load_and_upsert.py data.json [--replace]
"""
import argparse
import logging
import sys

import pandas as pd
from sqlalchemy import select

from catalog_api.catalog import CatalogStore
from catalog_api.config import Settings
from catalog_api.db import Base, make_engine, make_sessionmaker
from catalog_api.errors import CatalogError
from catalog_api.keyword_search import build_keyword_index
from catalog_api.models import Product

logger = logging.getLogger("load_and_upsert")

# source column -> product field; the storefront export uses Portuguese keys
COLUMN_ALIASES = {
    "nome": "name", "name": "name", "title": "name",
    "descricao": "description", "description": "description",
    "preco": "price", "price": "price",
    "categoria": "category", "category": "category",
    "linkMockups": "google_drive_link", "google_drive_link": "google_drive_link",
    "imagem": "image_url", "image_url": "image_url",
    "emPromocao": "on_sale", "on_sale": "on_sale",
}


def read_frame(path: str) -> pd.DataFrame:
    if path.lower().endswith(".csv"):
        return pd.read_csv(path)
    return pd.read_json(path)


def to_float(v):
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return None
    s = str(v).replace("R$", "").replace("$", "").strip().replace(",", ".")
    try:
        return float(s)
    except ValueError:
        return None


def to_bool(v) -> bool:
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return False
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "sim"}
    return bool(v)


def row_to_fields(row: dict) -> dict:
    fields = {}
    for col, value in row.items():
        target = COLUMN_ALIASES.get(col)
        if target is None or target in fields:
            continue
        if target == "price":
            fields[target] = to_float(value)
        elif target == "on_sale":
            fields[target] = to_bool(value)
        elif value is None or (isinstance(value, float) and pd.isna(value)):
            fields[target] = None
        else:
            fields[target] = str(value).strip()
    return fields


def load(store: CatalogStore, df: pd.DataFrame, replace: bool = False):
    """Returns (created, skipped)."""
    if replace:
        ids = list(store.session.execute(select(Product.id)).scalars())
        for pid in ids:
            store.delete_product(pid)
        logger.info(f"Removed {len(ids)} existing products")

    created = skipped = 0
    for row in df.to_dict(orient="records"):
        try:
            store.create_product(row_to_fields(row))
            created += 1
        except CatalogError as e:
            skipped += 1
            logger.warning(f"Skipping row {row!r}: {e.message}")
    return created, skipped


def main(argv=None):
    parser = argparse.ArgumentParser(description="Load catalog products into the database")
    parser.add_argument("path", help="JSON or CSV file")
    parser.add_argument("--replace", action="store_true", help="Delete existing products first")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(message)s")

    engine = make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    keyword_index = build_keyword_index(settings.keyword_search, engine.dialect.name)
    keyword_index.ensure(engine)

    df = read_frame(args.path)
    with make_sessionmaker(engine)() as session:
        created, skipped = load(CatalogStore(session, keyword_index), df, replace=args.replace)
    logger.info(f"✅ {created} products loaded, {skipped} skipped")
    return 0 if created or not len(df) else 1


if __name__ == "__main__":
    sys.exit(main())
