from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from identity.core.errors import InvalidToken
from identity.core.security import TokenIssuer, get_token_issuer
from identity.db.session import get_db
from identity.models.users import User
from identity.repositories.users import UserRepository
from identity.repositories.verifications import VerificationRepository
from identity.services.accounts import AccountService
from identity.services.notifier import Notifier, get_notifier

bearer_scheme = HTTPBearer(auto_error=False)


def get_account_service(
        db: AsyncSession = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> AccountService:
    return AccountService(
        users=UserRepository(db),
        verifications=VerificationRepository(db),
        notifier=notifier,
        token_issuer=token_issuer,
    )


async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: AsyncSession = Depends(get_db),
        token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """
    Resolves the bearer token issued on login to the stored user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        user_id = token_issuer.decode(credentials.credentials)
    except InvalidToken:
        raise credentials_exception

    user = await UserRepository(db).find_by_id(user_id)
    if user is None:
        raise credentials_exception

    return user
