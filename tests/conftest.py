"""
Shared fixtures: a temp-file SQLite catalog and fakes for the two external services.
"""
import pytest
from fastapi.testclient import TestClient

from catalog_api.catalog import CatalogStore
from catalog_api.config import Settings
from catalog_api.db import Base, make_engine, make_sessionmaker
from catalog_api.keyword_search import build_keyword_index
from catalog_api.main import create_app
from catalog_api.pinecone_client import Match

DIM = 8


class FakeEmbedder:
    def __init__(self, dimension: int = DIM):
        self.dimension = dimension
        self.calls = []
        self.error = None

    def embed(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return [0.1] * self.dimension


class FakeVectorIndex:
    def __init__(self):
        self.matches = []
        self.queries = []
        self.upserted = []
        self.deleted = []

    def query(self, vector, top_k=5):
        self.queries.append((vector, top_k))
        return [Match(id=str(mid), score=score) for mid, score in self.matches][:top_k]

    def upsert(self, items):
        self.upserted.extend(items)

    def delete(self, ids):
        self.deleted.extend(ids)


def make_settings(tmp_path, keyword_search="fts", **overrides):
    values = dict(
        database_url=f"sqlite:///{tmp_path / 'catalog.db'}",
        keyword_search=keyword_search,
        embed_dimension=DIM,
        external_timeout=2.0,
        external_retries=0,
        external_backoff=0.0,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_index():
    return FakeVectorIndex()


@pytest.fixture(params=["fts", "like"])
def keyword_mode(request):
    return request.param


@pytest.fixture
def client(tmp_path, embedder, vector_index):
    app = create_app(make_settings(tmp_path), embedder=embedder, vector_index=vector_index)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def any_client(tmp_path, keyword_mode, embedder, vector_index):
    """Client parametrized over both keyword index implementations."""
    app = create_app(make_settings(tmp_path, keyword_mode), embedder=embedder, vector_index=vector_index)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine, keyword_mode):
    keyword_index = build_keyword_index(keyword_mode, engine.dialect.name)
    keyword_index.ensure(engine)
    session = make_sessionmaker(engine)()
    try:
        yield CatalogStore(session, keyword_index)
    finally:
        session.close()


@pytest.fixture
def fts_store(engine):
    keyword_index = build_keyword_index("fts", engine.dialect.name)
    keyword_index.ensure(engine)
    session = make_sessionmaker(engine)()
    try:
        yield CatalogStore(session, keyword_index)
    finally:
        session.close()
