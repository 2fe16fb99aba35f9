from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class ProductFields(BaseModel):
    # name is checked by the store so every writer gets the same error
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    google_drive_link: Optional[str] = None
    image_url: Optional[str] = None
    on_sale: Optional[bool] = None
    campaign_id: Optional[int] = None


class CampaignFields(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    google_drive_link: Optional[str] = None
    image_url: Optional[str] = None
    on_sale: bool = False
    campaign_id: Optional[int] = None


class CampaignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None


def envelope(data: Any, message: str = "success", changes: Optional[int] = None) -> dict:
    body = {"message": message, "data": data}
    if changes is not None:
        body["changes"] = changes
    return body
