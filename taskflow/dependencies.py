from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from taskflow.database import get_db as db_session
from taskflow.models.user import User as UserModel
from taskflow.schemas.user import TokenData
from taskflow.storage import Storage
from taskflow.utils.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

def get_db(db: AsyncSession = Depends(db_session)):
    return db

def get_store(db: AsyncSession = Depends(get_db)) -> Storage:
    return Storage(db)

async def get_current_user(
    store: Storage = Depends(get_store),
    token: str = Depends(oauth2_scheme)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    username = decode_access_token(token)
    if username is None:
        raise credentials_exception
    token_data = TokenData(username=username)

    users = await store.find_by(UserModel, username=token_data.username, limit=1)
    if not users:
        raise credentials_exception
    return users[0]
