# catalog_api/semantic_search.py
import logging
from typing import List, Optional

from .catalog import CatalogStore
from .errors import ExternalServiceError, ValidationError
from .models import Product
from .normalize import clean_text, parse_vector_id
from .remote import call_external

logger = logging.getLogger(__name__)


class SemanticSearch:
    """
    Query text -> embedding -> nearest neighbours in the vector index ->
    products from the catalog store.

    Results keep the similarity rank (highest score first, ties by lower id).
    Any failed step aborts the whole call; there is no keyword fallback.
    """

    def __init__(self, embedder, vector_index, top_k: int = 5,
                 timeout: float = 10.0, retries: int = 2, backoff: float = 0.5):
        self.embedder = embedder
        self.vector_index = vector_index
        self.top_k = top_k
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff

    def _call(self, fn, what: str):
        return call_external(fn, what=what, timeout=self.timeout,
                             retries=self.retries, backoff=self.backoff)

    def ranked_ids(self, query: str) -> List[int]:
        vector = self._call(lambda: self.embedder.embed(query), "Embedding request")
        matches = self._call(lambda: self.vector_index.query(vector, top_k=self.top_k), "Vector index query")

        scored = []
        for m in matches:
            try:
                scored.append((parse_vector_id(m.id), m.score))
            except ValueError as e:
                raise ExternalServiceError(f"Vector index returned a malformed id {m.id!r}") from e
        scored.sort(key=lambda pair: (-pair[1], pair[0]))

        seen, ids = set(), []
        for pid, _ in scored:
            if pid not in seen:
                seen.add(pid)
                ids.append(pid)
        return ids

    def search(self, store: CatalogStore, query: Optional[str]) -> List[Product]:
        query = clean_text(query)
        if not query:
            raise ValidationError("The 'query' parameter is required.")

        ids = self.ranked_ids(query)
        if not ids:
            return []

        by_id = {p.id: p for p in store.get_products_by_ids(ids)}
        stale = [pid for pid in ids if pid not in by_id]
        if stale:
            logger.warning(f"Vector index returned ids missing from the catalog: {stale}")
        return [by_id[pid] for pid in ids if pid in by_id]
