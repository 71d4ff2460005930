"""
User accounts: signup, signin, profile and password management.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from walkin.core.config import Settings, settings as default_settings
from walkin.core.db import User, utcnow
from walkin.core.logger import get_logger
from walkin.core.security import get_password_hash, verify_password
from walkin.services import validation
from walkin.services.errors import (
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)

logger = get_logger("users")


@dataclass
class SignInResult:
    user: User
    weak_password: bool


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_uid(db: Session, uid: str) -> Optional[User]:
    return db.get(User, uid)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def user_exists(db: Session, uid: str) -> bool:
    return get_user_by_uid(db, uid) is not None


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: str = "employee",
    kakao_id: Optional[str] = None,
    profile_image: Optional[str] = None,
) -> User:
    """Insert a user row; callers are responsible for validating input."""
    now = utcnow()
    user = User(
        uid=uuid.uuid4().hex,
        email=_normalize_email(email),
        name=name.strip(),
        password_hash=get_password_hash(password),
        role=role,
        kakao_id=kakao_id or None,
        profile_image=profile_image or None,
        created_at=now,
        last_login_at=now,
    )
    db.add(user)
    db.commit()
    return user


def sign_up(
    db: Session,
    email: str,
    password: str,
    name: str,
    config: Optional[Settings] = None,
) -> User:
    """
    Register a new account.

    New users are employees unless their email is listed in ADMIN_EMAILS.

    Raises:
        ValidationError: If email, password or name break the signup rules
        EmailAlreadyInUseError: If the email is already registered
    """
    config = config or default_settings

    errors = {
        "email": validation.get_email_error(email.strip()),
        "password": validation.get_password_error(password),
        "name": validation.get_name_error(name),
    }
    errors = {field: message for field, message in errors.items() if message}
    if errors:
        raise ValidationError(next(iter(errors.values())), details={"fields": errors})

    if get_user_by_email(db, email):
        raise EmailAlreadyInUseError("이미 사용 중인 이메일입니다")

    role = "admin" if _normalize_email(email) in config.ADMIN_EMAILS else "employee"
    user = create_user(db, email, password, name, role=role)
    logger.info(f"User signed up: {user.uid} ({role})")
    return user


def sign_in(db: Session, email: str, password: str) -> SignInResult:
    """
    Verify credentials and record the login time.

    Unknown emails and wrong passwords raise the same error so that the
    response does not reveal which accounts exist.
    """
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Sign-in rejected: invalid credentials")
        raise InvalidCredentialsError("잘못된 인증 정보입니다")

    update_last_login(db, user)
    return SignInResult(user=user, weak_password=validation.is_weak_password(password))


def update_last_login(db: Session, user: User) -> None:
    user.last_login_at = utcnow()
    db.commit()


def update_user_profile(
    db: Session,
    uid: str,
    name: Optional[str] = None,
    profile_image: Optional[str] = None,
) -> User:
    """Apply only the fields that were given; an empty update is a no-op."""
    user = get_user_by_uid(db, uid)
    if user is None:
        raise NotFoundError("사용자 정보를 찾을 수 없습니다")

    updates = {
        key: value
        for key, value in {"name": name, "profile_image": profile_image}.items()
        if value is not None
    }
    if not updates:
        return user

    if "name" in updates:
        name_error = validation.get_name_error(updates["name"])
        if name_error:
            raise ValidationError(name_error, details={"fields": {"name": name_error}})
        updates["name"] = updates["name"].strip()

    for key, value in updates.items():
        setattr(user, key, value)
    db.commit()
    return user


def change_password(
    db: Session,
    uid: str,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    user = get_user_by_uid(db, uid)
    if user is None:
        raise NotFoundError("사용자 정보를 찾을 수 없습니다")

    errors = {}
    if not current_password:
        errors["current_password"] = "현재 비밀번호를 입력해주세요"
    new_error = validation.get_password_error(new_password)
    if new_error:
        errors["new_password"] = new_error
    if new_password != confirm_password:
        errors["confirm_password"] = "비밀번호가 일치하지 않습니다"
    if errors:
        raise ValidationError(next(iter(errors.values())), details={"fields": errors})

    if not verify_password(current_password, user.password_hash):
        message = "현재 비밀번호가 일치하지 않습니다"
        raise ValidationError(message, details={"fields": {"current_password": message}})

    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user {uid}")
