from fastapi import Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from .catalog import CatalogStore
from .db import get_db
from .search import SearchFacade


def add_cors(app, origins=None):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def get_store(request: Request, db: Session = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db, request.app.state.keyword_index)


def get_search(request: Request) -> SearchFacade:
    return request.app.state.search
