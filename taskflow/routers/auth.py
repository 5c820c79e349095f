from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from datetime import timedelta
from taskflow.dependencies import get_store
from taskflow.schemas.user import Token
from taskflow.services import users as user_service
from taskflow.storage import Storage
from taskflow.utils.security import create_access_token
from taskflow.config import settings

router = APIRouter(tags=["auth"])

@router.post("/token", response_model=Token)
async def login_for_access_token(
    store: Storage = Depends(get_store),
    form_data: OAuth2PasswordRequestForm = Depends()
):
    user = await user_service.authenticate(store, form_data.username, form_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}
