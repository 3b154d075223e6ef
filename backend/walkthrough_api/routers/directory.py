"""Teachers and locations."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_current_user, get_db, get_directory
from walkthrough_api.schemas import (
    LocationCreate,
    LocationOut,
    TeacherCreate,
    TeacherOut,
    TeacherUpdate,
    TeacherWithAccountCreate,
    TeacherWithAccountResponse,
    UserOut,
)
from walkthrough_api.services.directory import DirectoryService

router = APIRouter(tags=["directory"])


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    return directory.list_teachers(db)


@router.get("/teachers/search", response_model=list[TeacherOut])
def search_teachers(
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    return directory.search_teachers(db, q)


@router.post("/teachers", response_model=TeacherOut, status_code=201)
def create_teacher(
    body: TeacherCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    return directory.create_teacher(db, user, body.model_dump())


@router.post("/teachers/create-with-account", response_model=TeacherWithAccountResponse, status_code=201)
def create_teacher_with_account(
    body: TeacherWithAccountCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    teacher, account = directory.create_teacher_with_account(db, user, body.model_dump())
    return TeacherWithAccountResponse(
        teacher=TeacherOut.model_validate(teacher),
        user=UserOut.model_validate(account),
    )


@router.put("/teachers/{teacher_id}", response_model=TeacherOut)
def update_teacher(
    teacher_id: str,
    body: TeacherUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    return directory.update_teacher(db, user, teacher_id, body.changes())


@router.get("/locations", response_model=list[LocationOut])
def list_locations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    return directory.list_locations(db)


@router.post("/locations", response_model=LocationOut, status_code=201)
def create_location(
    body: LocationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory),
):
    return directory.create_location(db, user, body.name, body.active)
