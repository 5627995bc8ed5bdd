"""Pydantic schemas for shops and App Bridge session tokens."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import datetime


class ShopResponse(BaseModel):
    public_id: str = Field(..., description="Public unique identifier for the shop (KSUID)")
    shop_domain: str = Field(..., description="The shop's myshopify.com domain")
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ShopCredential(BaseModel):
    """What the order fetcher needs to talk to one shop's Admin API."""

    shop_domain: str
    access_token: str = Field(..., repr=False)


class SessionTokenData(BaseModel):
    dest: Optional[str] = None
    sub: Optional[str] = None
