import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pinecone import Pinecone, ServerlessSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Match:
    id: str
    score: float


def _field(obj: Any, name: str, default=None):
    # SDK responses are models with attribute access; fakes and older SDKs hand back dicts
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def parse_matches(res: Any) -> List[Match]:
    """Turn a query response into Match records. Raises ValueError on a malformed payload."""
    matches = _field(res, "matches") or []
    out: List[Match] = []
    for m in matches:
        mid = _field(m, "id")
        score = _field(m, "score")
        if mid is None or score is None:
            raise ValueError(f"match without id/score: {m!r}")
        out.append(Match(id=str(mid), score=float(score)))
    return out


class PineconeVectorIndex:
    """Thin wrapper over one Pinecone index holding one vector per product."""

    def __init__(self, api_key: str, index_name: str = "catalog-products",
                 client: Optional[Pinecone] = None, timeout: float = 10.0):
        if not api_key and client is None:
            raise RuntimeError("Missing PINECONE_API_KEY")
        self.index_name = index_name
        self.timeout = timeout
        self._pc = client or Pinecone(api_key=api_key)
        self._index = None

    @property
    def index(self):
        if self._index is None:
            self._index = self._pc.Index(self.index_name)
        return self._index

    def query(self, vector: List[float], top_k: int = 5) -> List[Match]:
        """Nearest neighbours by the index metric; vector values are not returned."""
        res = self.index.query(
            vector=vector,
            top_k=top_k,
            include_values=False,
            include_metadata=False,
            _request_timeout=self.timeout,
        )
        return parse_matches(res)

    def upsert(self, items: List[Dict[str, Any]]) -> None:
        """items: [{"id": str, "values": [...], "metadata": {...}}]"""
        if items:
            self.index.upsert(vectors=items, _request_timeout=self.timeout)

    def delete(self, ids: List[str]) -> None:
        if ids:
            self.index.delete(ids=ids, _request_timeout=self.timeout)

    def ensure_index(self, dimension: int, metric: str = "cosine",
                     cloud: str = "aws", region: str = "us-east-1", wait_seconds: int = 60) -> bool:
        """Create the index if missing. Returns True when it had to be created."""
        if self.index_name in self._pc.list_indexes().names():
            return False
        logger.info(f"Index '{self.index_name}' not found. Creating ({dimension} dims, {metric})...")
        self._pc.create_index(
            name=self.index_name,
            dimension=dimension,
            metric=metric,
            spec=ServerlessSpec(cloud=cloud, region=region),
        )
        deadline = time.monotonic() + wait_seconds
        while time.monotonic() < deadline:
            status = _field(self._pc.describe_index(self.index_name), "status") or {}
            if _field(status, "ready"):
                break
            time.sleep(2)
        return True
