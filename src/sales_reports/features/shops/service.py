"""Business logic for shops: lookup, registration and credential resolution."""
import logging
from typing import Optional

from . import models
from .schemas import ShopCredential

logger = logging.getLogger(__name__)


class ShopCredentialError(Exception):
    """The shop is unknown or has no Admin API access token."""


def normalize_shop_domain(shop_domain: str) -> str:
    """Lower-cases a shop domain and strips any scheme or trailing slash.

    Args:
        shop_domain: A bare domain or a URL such as ``https://example.myshopify.com/``.

    Returns:
        The bare domain, e.g. ``example.myshopify.com``.
    """
    domain = shop_domain.strip().lower()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    return domain.rstrip("/")


async def get_shop_by_domain(shop_domain: str) -> Optional[models.Shop]:
    return await models.Shop.get_or_none(shop_domain=normalize_shop_domain(shop_domain))


async def register_shop(shop_domain: str, access_token: str) -> models.Shop:
    """Creates the shop, or refreshes its access token if it changed.

    Args:
        shop_domain: The shop's myshopify.com domain.
        access_token: The offline Admin API access token.

    Returns:
        The created or updated Shop.
    """
    domain = normalize_shop_domain(shop_domain)
    shop = await models.Shop.get_or_none(shop_domain=domain)
    if shop is None:
        shop = await models.Shop.create(shop_domain=domain, access_token=access_token)
        logger.info("Registered shop %s", domain)
    elif shop.access_token != access_token:
        shop.access_token = access_token
        await shop.save(update_fields=["access_token", "updated_at"])
        logger.info("Refreshed access token for shop %s", domain)
    return shop


async def resolve_shop_credential(shop_id: int) -> ShopCredential:
    """Returns the Admin API credential for a shop.

    Raises:
        ShopCredentialError: If the shop does not exist or has no token.
    """
    shop = await models.Shop.get_or_none(id=shop_id)
    if shop is None:
        raise ShopCredentialError(f"Shop {shop_id} not found")
    if not shop.access_token:
        raise ShopCredentialError(f"No access token for shop {shop.shop_domain}")
    return ShopCredential(shop_domain=shop.shop_domain, access_token=shop.access_token)
