from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from habit_ladder import config
from habit_ladder.database import get_db
from habit_ladder.models import User
from habit_ladder.repositories.item_repository import UserRepository
from habit_ladder.services.access_service import AccessPolicy

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

access_policy = AccessPolicy()


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != config.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


def get_current_user(
    x_user_id: int = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the acting user from the X-User-Id header"""
    user = UserRepository.get_by_id(db, x_user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user"
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only users holding the admin role"""
    if not access_policy.can_administer(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return user
