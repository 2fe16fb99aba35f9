# catalog_api/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from .config import Settings
from .db import Base, make_engine, make_sessionmaker
from .deps import add_cors
from .embeddings import build_embedder
from .errors import register_error_handlers
from .keyword_search import build_keyword_index
from .pinecone_client import PineconeVectorIndex
from .routes.campaigns import router as campaigns_router
from .routes.products import router as products_router
from .search import SearchFacade
from .semantic_search import SemanticSearch

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_semantic_search(settings: Settings, embedder=None, vector_index=None) -> Optional[SemanticSearch]:
    """Semantic search needs both collaborators; without a Pinecone key it stays off."""
    if vector_index is None and settings.semantic_enabled:
        vector_index = PineconeVectorIndex(
            settings.pinecone_api_key, settings.pinecone_index, timeout=settings.external_timeout
        )
    if vector_index is None:
        return None
    if embedder is None:
        embedder = build_embedder(settings)
    return SemanticSearch(
        embedder,
        vector_index,
        top_k=settings.semantic_top_k,
        timeout=settings.external_timeout,
        retries=settings.external_retries,
        backoff=settings.external_backoff,
    )


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    embedder=None,
    vector_index=None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_engine = engine or make_engine(settings.database_url)
        Base.metadata.create_all(bind=db_engine)

        keyword_index = build_keyword_index(settings.keyword_search, db_engine.dialect.name)
        keyword_index.ensure(db_engine)

        semantic = build_semantic_search(settings, embedder=embedder, vector_index=vector_index)

        app.state.engine = db_engine
        app.state.session_factory = make_sessionmaker(db_engine)
        app.state.keyword_index = keyword_index
        app.state.search = SearchFacade(semantic)
        logger.info(
            f"Catalog API ready: db={db_engine.dialect.name} keyword={keyword_index.name} "
            f"semantic={'on' if semantic else 'off'}"
        )
        try:
            yield
        finally:
            db_engine.dispose()

    app = FastAPI(title="Online Catalog API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    add_cors(app, settings.cors_origins)
    register_error_handlers(app)

    @app.get("/")
    def root():
        return {"message": "Welcome to the online catalog API!"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(products_router, prefix=settings.api_prefix)
    app.include_router(campaigns_router, prefix=settings.api_prefix)
    return app


_settings = Settings.from_env()
configure_logging(_settings.log_level)
app = create_app(_settings)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog_api.main:app", host="0.0.0.0", port=_settings.port, log_level="info")
