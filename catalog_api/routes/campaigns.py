from fastapi import APIRouter, Depends

from ..catalog import CatalogStore
from ..deps import get_store
from ..errors import NotFoundError
from ..schemas import CampaignFields, CampaignOut, ProductOut, envelope

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


def _campaign(c) -> dict:
    return CampaignOut.model_validate(c).model_dump()


@router.get("")
def list_campaigns(store: CatalogStore = Depends(get_store)):
    return envelope([_campaign(c) for c in store.list_campaigns()])


@router.get("/{campaign_id}/products")
def list_campaign_products(campaign_id: int, store: CatalogStore = Depends(get_store)):
    products = store.list_campaign_products(campaign_id)
    return envelope([ProductOut.model_validate(p).model_dump() for p in products])


@router.get("/{campaign_id}")
def get_campaign(campaign_id: int, store: CatalogStore = Depends(get_store)):
    return envelope(_campaign(store.get_campaign(campaign_id)))


@router.post("", status_code=201)
def create_campaign(body: CampaignFields, store: CatalogStore = Depends(get_store)):
    camp = store.create_campaign(body.model_dump(exclude_unset=True))
    return envelope(_campaign(camp), message="Campaign created.")


@router.put("/{campaign_id}")
def update_campaign(campaign_id: int, body: CampaignFields, store: CatalogStore = Depends(get_store)):
    changes = store.update_campaign(campaign_id, body.model_dump(exclude_unset=True))
    if changes == 0:
        raise NotFoundError(f"Campaign {campaign_id} not found")
    return envelope(
        _campaign(store.get_campaign(campaign_id)),
        message=f"Campaign {campaign_id} updated.",
        changes=changes,
    )


@router.delete("/{campaign_id}")
def delete_campaign(campaign_id: int, store: CatalogStore = Depends(get_store)):
    changes = store.delete_campaign(campaign_id)
    if changes == 0:
        raise NotFoundError(f"Campaign {campaign_id} not found")
    return envelope({"id": campaign_id}, message=f"Campaign {campaign_id} deleted.", changes=changes)
