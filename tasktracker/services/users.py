"""User management: the registration hook, profile updates and account deletion."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from tasktracker.database import commit
from tasktracker.exceptions import ConflictException, InvalidArgumentException, NotFoundException
from tasktracker.models import Project, Task, TaskComment, User
from tasktracker.schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _ensure_email_free(db: Session, email: str, exclude_user_id: Optional[int] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first() is not None:
        raise ConflictException("User already exists")


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundException("User not found")
    return user


def create_user(db: Session, user_in: UserCreate) -> User:
    """Store a new user.

    Account registration (password hashing, token issuance) lives outside this
    service; the registration collaborator calls this with an already hashed
    credential. No route exposes it.

    Raises:
        ConflictException: the email is already registered
    """
    email = _normalize_email(user_in.email)
    _ensure_email_free(db, email)

    user = User(name=user_in.name.strip(), email=email, password_hash=user_in.password_hash)
    db.add(user)
    commit(db)
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.name.asc(), User.id.asc()).all()


def update_profile(db: Session, user_id: int, user_update: UserUpdate) -> User:
    user = get_user(db, user_id)
    data = user_update.model_dump(exclude_unset=True)

    if data.get("email") is not None:
        data["email"] = _normalize_email(data["email"])
        _ensure_email_free(db, data["email"], exclude_user_id=user.id)
    if data.get("name") is not None:
        data["name"] = data["name"].strip()

    for field_name, value in data.items():
        if value is not None:
            setattr(user, field_name, value)

    commit(db)
    db.refresh(user)
    return user


def delete_user(db: Session, acting_user_id: int, target_user_id: int) -> None:
    """Delete another user's account.

    Raises:
        InvalidArgumentException: the actor targets their own account
        NotFoundException: no such user
        ConflictException: the user still owns projects
    """
    if acting_user_id == target_user_id:
        raise InvalidArgumentException("You cannot delete your own account")

    user = get_user(db, target_user_id)
    owned = db.query(Project.id).filter(Project.owner_id == user.id).count()
    if owned:
        raise ConflictException("User still owns projects")

    db.query(Task).filter(Task.assignee_id == user.id).update(
        {Task.assignee_id: None}, synchronize_session="fetch"
    )
    db.query(TaskComment).filter(TaskComment.author_id == user.id).update(
        {TaskComment.author_id: None}, synchronize_session="fetch"
    )
    db.delete(user)
    commit(db)
    logger.info("User %s deleted user %s", acting_user_id, target_user_id)
