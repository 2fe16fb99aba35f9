# catalog_api/catalog.py
"""
Catalog store: products and campaigns on top of a SQLAlchemy session.

Every product write mirrors into the keyword index and queues a vector
outbox entry inside the same transaction, so either all three land or none.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import NotFoundError, StoreError, ValidationError
from .keyword_search import KeywordIndex
from .models import EMBEDDED_FIELDS, Campaign, Product, VectorOutbox

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "name", "description", "price", "category",
    "google_drive_link", "image_url", "on_sale", "campaign_id",
)
CAMPAIGN_FIELDS = ("title", "description", "image_url")


def _pick(fields: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    return {k: v for k, v in (fields or {}).items() if k in allowed}


def _require_text(value: Any, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()


class CatalogStore:
    def __init__(self, session: Session, keyword_index: KeywordIndex):
        self.session = session
        self.keyword_index = keyword_index

    # ---------------------------------------------------------
    # transactions
    # ---------------------------------------------------------
    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Database error: {e}") from e

    def _run(self, fn, *args):
        try:
            return fn(*args)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Database error: {e}") from e

    # ---------------------------------------------------------
    # products: reads
    # ---------------------------------------------------------
    def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        on_sale: Optional[bool] = None,
    ) -> List[Product]:
        stmt = select(Product)
        if category:
            stmt = stmt.where(Product.category == category)
        if on_sale is not None:
            stmt = stmt.where(Product.on_sale.is_(on_sale))
        stmt = self.keyword_index.search(stmt, search)
        return self._run(lambda: list(self.session.execute(stmt).scalars()))

    def get_product(self, product_id: int) -> Product:
        prod = self._run(self.session.get, Product, product_id)
        if prod is None:
            raise NotFoundError(f"Product {product_id} not found")
        return prod

    def get_products_by_ids(self, ids: List[int]) -> List[Product]:
        """One batch fetch; rows come back ordered by name, missing ids are skipped."""
        if not ids:
            return []
        stmt = select(Product).where(Product.id.in_(ids)).order_by(Product.name, Product.id)
        return self._run(lambda: list(self.session.execute(stmt).scalars()))

    # ---------------------------------------------------------
    # products: writes
    # ---------------------------------------------------------
    def _check_product_values(self, values: Dict[str, Any]):
        if "name" in values:
            values["name"] = _require_text(values["name"], "Product name")
        price = values.get("price")
        if price is not None and price < 0:
            raise ValidationError("Product price cannot be negative")
        if "on_sale" in values and values["on_sale"] is None:
            values["on_sale"] = False
        campaign_id = values.get("campaign_id")
        if campaign_id is not None and self._run(self.session.get, Campaign, campaign_id) is None:
            raise ValidationError(f"Campaign {campaign_id} does not exist")

    def _queue_vector(self, product_id: int, op: str):
        self.session.add(VectorOutbox(product_id=product_id, op=op))

    def create_product(self, fields: Dict[str, Any]) -> Product:
        values = _pick(fields, PRODUCT_FIELDS)
        values["name"] = values.get("name")
        self._check_product_values(values)

        prod = Product(**values)
        try:
            self.session.add(prod)
            self.session.flush()  # assigns the id
            self.keyword_index.index(self.session, prod)
            self._queue_vector(prod.id, "upsert")
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Database error: {e}") from e
        self._commit()
        logger.info(f"Product created id={prod.id} name='{prod.name}'")
        return prod

    def update_product(self, product_id: int, fields: Dict[str, Any]) -> int:
        """Partial update. Returns 0 when the product does not exist."""
        prod = self._run(self.session.get, Product, product_id)
        if prod is None:
            return 0
        values = _pick(fields, PRODUCT_FIELDS)
        if not values:
            return 1
        self._check_product_values(values)

        text_changed = any(
            k in EMBEDDED_FIELDS and getattr(prod, k) != v for k, v in values.items()
        )
        try:
            for k, v in values.items():
                setattr(prod, k, v)
            self.session.flush()
            self.keyword_index.index(self.session, prod)
            if text_changed:
                self._queue_vector(prod.id, "upsert")
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Database error: {e}") from e
        self._commit()
        return 1

    def delete_product(self, product_id: int) -> int:
        prod = self._run(self.session.get, Product, product_id)
        if prod is None:
            return 0
        try:
            self.session.delete(prod)
            self.session.flush()
            self.keyword_index.remove(self.session, product_id)
            self._queue_vector(product_id, "delete")
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Database error: {e}") from e
        self._commit()
        logger.info(f"Product deleted id={product_id}")
        return 1

    # ---------------------------------------------------------
    # campaigns
    # ---------------------------------------------------------
    def list_campaigns(self) -> List[Campaign]:
        stmt = select(Campaign).order_by(Campaign.title, Campaign.id)
        return self._run(lambda: list(self.session.execute(stmt).scalars()))

    def get_campaign(self, campaign_id: int) -> Campaign:
        camp = self._run(self.session.get, Campaign, campaign_id)
        if camp is None:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        return camp

    def list_campaign_products(self, campaign_id: int) -> List[Product]:
        self.get_campaign(campaign_id)
        stmt = (
            select(Product)
            .where(Product.campaign_id == campaign_id)
            .order_by(Product.name, Product.id)
        )
        return self._run(lambda: list(self.session.execute(stmt).scalars()))

    def create_campaign(self, fields: Dict[str, Any]) -> Campaign:
        values = _pick(fields, CAMPAIGN_FIELDS)
        values["title"] = _require_text(values.get("title"), "Campaign title")
        camp = Campaign(**values)
        self.session.add(camp)
        self._commit()
        return camp

    def update_campaign(self, campaign_id: int, fields: Dict[str, Any]) -> int:
        camp = self._run(self.session.get, Campaign, campaign_id)
        if camp is None:
            return 0
        values = _pick(fields, CAMPAIGN_FIELDS)
        if "title" in values:
            values["title"] = _require_text(values["title"], "Campaign title")
        for k, v in values.items():
            setattr(camp, k, v)
        self._commit()
        return 1

    def delete_campaign(self, campaign_id: int) -> int:
        """Deletes the campaign; its products stay, with campaign_id cleared."""
        camp = self._run(self.session.get, Campaign, campaign_id)
        if camp is None:
            return 0
        try:
            self.session.execute(
                update(Product)
                .where(Product.campaign_id == campaign_id)
                .values(campaign_id=None)
                .execution_options(synchronize_session="fetch")
            )
            self.session.delete(camp)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Database error: {e}") from e
        self._commit()
        return 1
