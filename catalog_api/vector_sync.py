# catalog_api/vector_sync.py
"""
Out-of-band job that keeps the similarity index in step with the catalog.

Product writes queue rows in `vector_outbox`; `drain_outbox` collapses them
to the latest operation per product, re-embeds changed products, deletes
removed ones from the index and only then clears the processed rows. A
failure leaves the outbox untouched so the next run picks the work up again.
"""
import logging
from typing import Dict, List, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .models import Product, VectorOutbox
from .normalize import embedding_text
from .remote import call_external

logger = logging.getLogger(__name__)


def queue_all(session: Session) -> int:
    """Queue every product for re-embedding."""
    ids = list(session.execute(select(Product.id)).scalars())
    session.add_all(VectorOutbox(product_id=pid, op="upsert") for pid in ids)
    session.commit()
    return len(ids)


def pending_ops(session: Session) -> Tuple[Dict[int, str], int]:
    """Latest op per product and the highest outbox id covered."""
    rows = session.execute(select(VectorOutbox).order_by(VectorOutbox.id)).scalars().all()
    latest: Dict[int, str] = {}
    for row in rows:
        latest[row.product_id] = row.op
    return latest, (rows[-1].id if rows else 0)


def vector_record(product: Product, values: List[float]) -> dict:
    return {
        "id": str(product.id),
        "values": values,
        "metadata": {"name": product.name, "category": product.category or ""},
    }


def drain_outbox(session: Session, embedder, vector_index, batch_size: int = 50,
                 timeout: float = 10.0, retries: int = 2, backoff: float = 0.5) -> Tuple[int, int]:
    """Returns (upserted, deleted)."""
    latest, high_water = pending_ops(session)
    if not latest:
        return 0, 0

    upsert_ids = [pid for pid, op in latest.items() if op == "upsert"]
    products = {
        p.id: p for p in session.execute(select(Product).where(Product.id.in_(upsert_ids))).scalars()
    } if upsert_ids else {}
    # queued for upsert but deleted since: drop from the index instead
    delete_ids = [pid for pid, op in latest.items() if op == "delete" or pid not in products]

    batch: List[dict] = []
    upserted = 0
    for pid in upsert_ids:
        prod = products.get(pid)
        if prod is None:
            continue
        text = embedding_text(prod.name, prod.category, prod.description)
        values = call_external(lambda: embedder.embed(text), what=f"Embedding product {pid}",
                               timeout=timeout, retries=retries, backoff=backoff)
        batch.append(vector_record(prod, values))
        logger.info(f"Vector ready for product '{prod.name}' (ID: {pid})")
        if len(batch) >= batch_size:
            call_external(lambda b=batch: vector_index.upsert(b), what="Vector upsert",
                          timeout=timeout, retries=retries, backoff=backoff)
            upserted += len(batch)
            batch = []
    if batch:
        call_external(lambda: vector_index.upsert(batch), what="Vector upsert",
                      timeout=timeout, retries=retries, backoff=backoff)
        upserted += len(batch)

    if delete_ids:
        ids = [str(pid) for pid in delete_ids]
        call_external(lambda: vector_index.delete(ids), what="Vector delete",
                      timeout=timeout, retries=retries, backoff=backoff)

    session.execute(delete(VectorOutbox).where(VectorOutbox.id <= high_water))
    session.commit()
    return upserted, len(delete_ids)
