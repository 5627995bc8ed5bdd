import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated
from urllib.parse import urlparse

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from ...core.config import SHOPIFY_API_KEY, SHOPIFY_API_SECRET, SESSION_TOKEN_ALGORITHM
from . import schemas, service as shop_service
from . import models

logger = logging.getLogger(__name__)

# App Bridge sends the session token as a bearer token on every API call
bearer_scheme = HTTPBearer(auto_error=False)


def create_session_token(
    shop_domain: str, user_id: str = "1", expires_delta: Optional[timedelta] = None
) -> str:
    """Mints an App Bridge style session token, for local development and tests."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=1))
    claims = {
        "iss": f"https://{shop_domain}/admin",
        "dest": f"https://{shop_domain}",
        "aud": SHOPIFY_API_KEY,
        "sub": user_id,
        "nbf": now - timedelta(seconds=5),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, SHOPIFY_API_SECRET, algorithm=SESSION_TOKEN_ALGORITHM)


def decode_session_token(token: str) -> schemas.SessionTokenData:
    options = {} if SHOPIFY_API_KEY else {"verify_aud": False}
    payload = jwt.decode(
        token,
        SHOPIFY_API_SECRET,
        algorithms=[SESSION_TOKEN_ALGORITHM],
        audience=SHOPIFY_API_KEY or None,
        options=options,
    )
    return schemas.SessionTokenData(**payload)


async def get_current_shop(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]
) -> models.Shop:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate session token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        token_data = decode_session_token(credentials.credentials)
    except JWTError as e:
        logger.error(f"Session token decoding error: {e}")
        raise credentials_exception
    except ValidationError as e:
        logger.error(f"Session token data validation error: {e}")
        raise credentials_exception

    if not token_data.dest:
        logger.warning("Session token dest (shop) is missing.")
        raise credentials_exception
    shop_domain = urlparse(token_data.dest).netloc or token_data.dest

    shop = await shop_service.get_shop_by_domain(shop_domain)
    if shop is None or not shop.access_token:
        logger.warning(f"No installed shop with a credential for {shop_domain}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Shop is not installed. Please reinstall the app.",
        )
    return shop
