from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

import models
from logger import logger


class Hasher:
    pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return Hasher.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        return Hasher.pwd_context.hash(password)


class NotAuthenticated(Exception):
    """Raised when a protected page is requested without a login"""


def authenticate(db: Session, username: str, password: str) -> Optional[models.User]:
    user = db.query(models.User).filter(models.User.username == username).first()
    if not user or not Hasher.verify_password(password, user.hashed_password):
        return None
    return user


def ensure_admin(db: Session, username: str, password: str) -> models.User:
    """Create the admin account unless it already exists"""
    user = db.query(models.User).filter(models.User.username == username).first()
    if user:
        return user
    user = models.User(username=username, hashed_password=Hasher.get_password_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created admin user '{username}'")
    return user
