"""User lookups (any signed-in user) and admin user management."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_accounts, get_current_user, get_db
from walkthrough_api.schemas import UserCreate, UserOut, UserUpdate
from walkthrough_api.services.accounts import AccountService

router = APIRouter(tags=["users"])


@router.get("/users", response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.list_users(db)


@router.get("/users/search", response_model=list[UserOut])
def search_users(
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.search_users(db, q)


@router.get("/users/reviewers", response_model=list[UserOut])
def list_reviewers(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    """Users a walkthrough can be assigned to for review."""
    return accounts.reviewers(db, user)


@router.get("/admin/users", response_model=list[UserOut])
def admin_list_users(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.admin_list_users(db, user)


@router.post("/admin/users", response_model=UserOut, status_code=201)
def admin_create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.admin_create_user(db, user, body.model_dump())


@router.put("/admin/users/{user_id}", response_model=UserOut)
def admin_update_user(
    user_id: str,
    body: UserUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.admin_update_user(db, user, user_id, body.changes())
