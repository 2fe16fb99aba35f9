from typing import List, Optional

from .catalog import CatalogStore
from .errors import ExternalServiceError, ValidationError
from .models import Product
from .normalize import clean_text
from .semantic_search import SemanticSearch


class SearchFacade:
    """
    Single entry point for product search. Callers pick one path per request:
      - list_products: keyword search (or plain listing when `search` is blank)
      - semantic_search: embedding + vector index
    Results from the two paths are never merged.
    """

    def __init__(self, semantic: Optional[SemanticSearch] = None):
        self.semantic = semantic

    @property
    def semantic_enabled(self) -> bool:
        return self.semantic is not None

    def list_products(self, store: CatalogStore, search: Optional[str] = None,
                      category: Optional[str] = None, on_sale: Optional[bool] = None) -> List[Product]:
        return store.list_products(search=search, category=category, on_sale=on_sale)

    def semantic_search(self, store: CatalogStore, query: Optional[str]) -> List[Product]:
        if not clean_text(query):
            raise ValidationError("The 'query' parameter is required.")
        if self.semantic is None:
            raise ExternalServiceError("Semantic search is not configured (set PINECONE_API_KEY).")
        return self.semantic.search(store, query)
