from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ..config import settings
from ..dependencies import get_store
from ..errors import NotFound
from ..models import UserRole
from ..services.document_store import USERS, DocumentStore


async def get_current_user(
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> Optional[dict]:
    """Get current user (provider or client) from the session cookie"""
    user_id = request.cookies.get(settings.SESSION_COOKIE_NAME)

    if not user_id:
        return None

    try:
        return await store.get(USERS, user_id)
    except NotFound:
        return None


async def require_auth(user: Optional[dict] = Depends(get_current_user)) -> dict:
    """Dependency that requires any authenticated user"""
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user


async def require_provider(user: dict = Depends(require_auth)) -> str:
    """Dependency that requires a provider session, returns the provider ID"""
    if user.get("role") != UserRole.PROVIDER.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authenticated as a provider"
        )
    return user["id"]


async def require_client(user: dict = Depends(require_auth)) -> str:
    """Dependency that requires a client (pet owner) session, returns the client ID"""
    if user.get("role") != UserRole.CLIENT.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authenticated as a client"
        )
    return user["id"]
