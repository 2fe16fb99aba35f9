# catalog_api/keyword_search.py
"""
Keyword search over the catalog.

Two interchangeable indexes:
  - FtsKeywordIndex: SQLite FTS5 table mirrored row-for-row from `products`,
    ranked by the FTS relevance score.
  - LikeKeywordIndex: case-insensitive substring match on name/description,
    ordered by name. Works on any backend and needs no mirroring.

Neither ever calls an external service.
"""
import logging
from typing import Optional

from sqlalchemy import Select, column, func, or_, table, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .models import Product
from .normalize import clean_text, fts_match_expression, like_pattern

logger = logging.getLogger(__name__)

_FTS = table("products_fts", column("rowid"), column("rank"))


class KeywordIndex:
    name = "base"

    def ensure(self, engine: Engine) -> None:
        """Create or back-fill the index at startup."""

    def index(self, session: Session, product: Product) -> None:
        """Mirror an inserted or updated product (replace semantics)."""

    def remove(self, session: Session, product_id: int) -> None:
        """Mirror a deleted product."""

    def search(self, stmt: Select, query: Optional[str]) -> Select:
        raise NotImplementedError


class LikeKeywordIndex(KeywordIndex):
    """
    With `casefold`, both sides go through the `casefold` SQL function that
    db.py registers on SQLite connections; otherwise the backend's ILIKE is used.
    """
    name = "like"

    def __init__(self, casefold: bool = False):
        self.casefold = casefold

    def search(self, stmt: Select, query: Optional[str]) -> Select:
        q = clean_text(query)
        if q and self.casefold:
            pat = like_pattern(q.casefold())
            stmt = stmt.where(or_(
                func.casefold(Product.name).like(pat, escape="\\"),
                func.casefold(Product.description).like(pat, escape="\\"),
            ))
        elif q:
            pat = like_pattern(q)
            stmt = stmt.where(or_(
                Product.name.ilike(pat, escape="\\"),
                Product.description.ilike(pat, escape="\\"),
            ))
        return stmt.order_by(Product.name, Product.id)


class FtsKeywordIndex(KeywordIndex):
    name = "fts"

    def ensure(self, engine: Engine) -> None:
        with engine.begin() as conn:
            conn.execute(text(
                "CREATE VIRTUAL TABLE IF NOT EXISTS products_fts "
                "USING fts5(name, description, category, tokenize='unicode61 remove_diacritics 2')"
            ))
            # rows written while the index did not exist, or left over from deletes
            added = conn.execute(text(
                "INSERT INTO products_fts(rowid, name, description, category) "
                "SELECT id, name, coalesce(description, ''), coalesce(category, '') FROM products "
                "WHERE id NOT IN (SELECT rowid FROM products_fts)"
            )).rowcount
            dropped = conn.execute(text(
                "DELETE FROM products_fts WHERE rowid NOT IN (SELECT id FROM products)"
            )).rowcount
        if added or dropped:
            logger.info(f"Keyword index resynced: +{added} -{dropped}")

    def index(self, session: Session, product: Product) -> None:
        self.remove(session, product.id)
        session.execute(
            text("INSERT INTO products_fts(rowid, name, description, category) "
                 "VALUES (:id, :name, :description, :category)"),
            {
                "id": product.id,
                "name": product.name,
                "description": product.description or "",
                "category": product.category or "",
            },
        )

    def remove(self, session: Session, product_id: int) -> None:
        session.execute(text("DELETE FROM products_fts WHERE rowid = :id"), {"id": product_id})

    def search(self, stmt: Select, query: Optional[str]) -> Select:
        expr = fts_match_expression(query)
        if not expr:
            return stmt.order_by(Product.name, Product.id)
        return (
            stmt.select_from(_FTS)
            .join(Product, Product.id == _FTS.c.rowid)
            .where(text("products_fts MATCH :match").bindparams(match=expr))
            .order_by(_FTS.c.rank, Product.name, Product.id)
        )


def build_keyword_index(mode: str, dialect: str) -> KeywordIndex:
    """
    Pick the keyword index for a backend.
    "auto" uses FTS5 on SQLite and substring matching elsewhere.
    """
    if mode == "fts":
        if dialect != "sqlite":
            raise ValueError("KEYWORD_SEARCH=fts requires a SQLite database")
        return FtsKeywordIndex()
    if mode == "like":
        return LikeKeywordIndex(casefold=dialect == "sqlite")
    return FtsKeywordIndex() if dialect == "sqlite" else LikeKeywordIndex()
