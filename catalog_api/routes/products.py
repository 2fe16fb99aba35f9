# catalog_api/routes/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..catalog import CatalogStore
from ..deps import get_search, get_store
from ..errors import NotFoundError
from ..schemas import ProductFields, ProductOut, envelope
from ..search import SearchFacade

router = APIRouter(prefix="/products", tags=["products"])


def _cards(products) -> List[dict]:
    return [ProductOut.model_validate(p).model_dump() for p in products]


def _ok(data, message: str = "success", changes: Optional[int] = None) -> dict:
    return envelope(data, message=message, changes=changes)


@router.get("")
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    on_sale: Optional[bool] = None,
    store: CatalogStore = Depends(get_store),
    facade: SearchFacade = Depends(get_search),
):
    products = facade.list_products(store, search=search, category=category, on_sale=on_sale)
    return _ok(_cards(products))


# must be registered before /{product_id}
@router.get("/ai-search")
def ai_search(
    query: Optional[str] = Query(default=None),
    store: CatalogStore = Depends(get_store),
    facade: SearchFacade = Depends(get_search),
):
    products = facade.semantic_search(store, query)
    if not products:
        return _ok([], message="No similar products found.")
    return _ok(_cards(products))


@router.get("/{product_id}")
def get_product(product_id: int, store: CatalogStore = Depends(get_store)):
    return _ok(ProductOut.model_validate(store.get_product(product_id)).model_dump())


@router.post("", status_code=201)
def create_product(body: ProductFields, store: CatalogStore = Depends(get_store)):
    prod = store.create_product(body.model_dump(exclude_unset=True))
    return _ok(ProductOut.model_validate(prod).model_dump(), message="Product created.")


@router.put("/{product_id}")
def update_product(product_id: int, body: ProductFields, store: CatalogStore = Depends(get_store)):
    changes = store.update_product(product_id, body.model_dump(exclude_unset=True))
    if changes == 0:
        raise NotFoundError(f"Product {product_id} not found")
    prod = store.get_product(product_id)
    return _ok(
        ProductOut.model_validate(prod).model_dump(),
        message=f"Product {product_id} updated.",
        changes=changes,
    )


@router.delete("/{product_id}")
def delete_product(product_id: int, store: CatalogStore = Depends(get_store)):
    changes = store.delete_product(product_id)
    if changes == 0:
        raise NotFoundError(f"Product {product_id} not found")
    return _ok({"id": product_id}, message=f"Product {product_id} deleted.", changes=changes)
