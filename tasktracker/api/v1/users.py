"""User endpoints"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.dependencies import get_current_user
from tasktracker.models import User
from tasktracker.schemas import UserResponse, UserUpdate
from tasktracker.services import users as user_service

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List users, e.g. to pick a share target."""
    return user_service.list_users(db)


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserResponse)
def update_current_user(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.update_profile(db, current_user.id, user_update)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete another user's account; deleting your own is refused."""
    user_service.delete_user(db, current_user.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
