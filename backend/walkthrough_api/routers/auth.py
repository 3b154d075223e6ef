"""Login, registration and the current user."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_accounts, get_current_user, get_db
from walkthrough_api.schemas import LoginRequest, RegisterRequest, TokenResponse, UserOut
from walkthrough_api.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
):
    token, user = accounts.login(db, body.username, body.password)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
):
    """Create an observer account and sign it in."""
    accounts.register(db, body.changes())
    token, user = accounts.login(db, body.username, body.password)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
