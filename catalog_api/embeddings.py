# catalog_api/embeddings.py
import logging
from typing import Any, List, Optional

import numpy as np
from huggingface_hub import InferenceClient
from sentence_transformers import SentenceTransformer

from .errors import ExternalServiceError

logger = logging.getLogger(__name__)


def to_vector(raw: Any, dimension: int) -> List[float]:
    """
    Coerce an embedding response into a flat list of floats.
    Accepts a (d,) vector or a single-row (1, d) matrix; anything else,
    or a length other than `dimension`, is a malformed response.
    """
    try:
        arr = np.asarray(raw, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise ExternalServiceError(f"Malformed embedding response: {e}") from e
    if arr.ndim == 2 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim != 1:
        raise ExternalServiceError(f"Malformed embedding response: unexpected shape {arr.shape}")
    if arr.shape[0] != dimension:
        raise ExternalServiceError(
            f"Embedding dimension mismatch: expected {dimension}, got {arr.shape[0]}"
        )
    if not np.all(np.isfinite(arr)):
        raise ExternalServiceError("Malformed embedding response: non-finite values")
    return arr.tolist()


class InferenceEmbedder:
    """Hosted Hugging Face inference (feature extraction)."""

    def __init__(self, model: str, token: Optional[str], dimension: int = 768, timeout: float = 10.0):
        self.model = model
        self.dimension = dimension
        self._client = InferenceClient(model=model, token=token, timeout=timeout)

    def embed(self, text: str) -> List[float]:
        return to_vector(self._client.feature_extraction(text), self.dimension)


class LocalEmbedder:
    """
    Same model run in-process with sentence-transformers.
    Loaded at construction so the first embed call stays within its timeout.
    """

    def __init__(self, model: str, dimension: int = 768):
        self.model = model
        self.dimension = dimension
        logger.info(f"Loading embedding model {model}")
        self._model = SentenceTransformer(model)

    def embed(self, text: str) -> List[float]:
        return to_vector(self._model.encode(text), self.dimension)


def build_embedder(settings):
    if settings.embed_provider == "local":
        return LocalEmbedder(settings.embed_model, settings.embed_dimension)
    return InferenceEmbedder(
        settings.embed_model,
        settings.huggingface_token,
        dimension=settings.embed_dimension,
        timeout=settings.external_timeout,
    )
