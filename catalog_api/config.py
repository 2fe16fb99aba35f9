import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables (optional for local dev)
load_dotenv()

EMBED_PROVIDERS = {"inference", "local"}
KEYWORD_MODES = {"auto", "fts", "like"}


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the catalog API."""

    database_url: str = "sqlite:///./catalog.db"
    keyword_search: str = "auto"

    # Semantic search
    pinecone_api_key: Optional[str] = None
    pinecone_index: str = "catalog-products"
    huggingface_token: Optional[str] = None
    embed_provider: str = "inference"
    embed_model: str = "sentence-transformers/paraphrase-multilingual-mpnet-base-v2"
    embed_dimension: int = 768
    semantic_top_k: int = 5

    # External calls
    external_timeout: float = 10.0
    external_retries: int = 2
    external_backoff: float = 0.5

    # HTTP
    api_prefix: str = "/api"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 3000

    def __post_init__(self):
        if self.embed_provider not in EMBED_PROVIDERS:
            raise ValueError(f"EMBED_PROVIDER must be one of {sorted(EMBED_PROVIDERS)}")
        if self.keyword_search not in KEYWORD_MODES:
            raise ValueError(f"KEYWORD_SEARCH must be one of {sorted(KEYWORD_MODES)}")
        if self.embed_dimension <= 0 or self.semantic_top_k <= 0:
            raise ValueError("EMBED_DIMENSION and SEMANTIC_TOP_K must be positive")
        if self.external_retries < 0:
            raise ValueError("EXTERNAL_RETRIES cannot be negative")

    @property
    def semantic_enabled(self) -> bool:
        return bool(self.pinecone_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        prefix = os.getenv("API_PREFIX", "/api").strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        return cls(
            database_url=os.getenv("DATABASE_URL") or "sqlite:///./catalog.db",
            keyword_search=os.getenv("KEYWORD_SEARCH", "auto").strip().lower(),
            pinecone_api_key=os.getenv("PINECONE_API_KEY") or None,
            pinecone_index=os.getenv("PINECONE_INDEX", "catalog-products"),
            huggingface_token=os.getenv("HUGGINGFACE_TOKEN") or None,
            embed_provider=os.getenv("EMBED_PROVIDER", "inference").strip().lower(),
            embed_model=os.getenv("EMBED_MODEL", cls.embed_model),
            embed_dimension=_int("EMBED_DIMENSION", 768),
            semantic_top_k=_int("SEMANTIC_TOP_K", 5),
            external_timeout=_float("EXTERNAL_TIMEOUT", 10.0),
            external_retries=_int("EXTERNAL_RETRIES", 2),
            external_backoff=_float("EXTERNAL_BACKOFF", 0.5),
            api_prefix=prefix,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=_int("PORT", 3000),
        )
