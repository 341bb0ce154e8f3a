"""
Accounts and bearer tokens for the blog API.

Authors and admins sign in with email + password and get a JWT whose
``sub`` is the user id. Routes that change posts, comments or uploads
depend on ``get_current_user``; public reads use ``get_optional_user`` so
a signed-in reader still sees their own likes.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from fastapi import HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
import bcrypt

from blog_app.config import settings
from blog_app.database import get_db
from blog_app.models.user import User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


# ============================================================
# PASSWORDS
# ============================================================

def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), hashed.encode())


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# ============================================================
# ACCOUNTS
# ============================================================

def register_user(
    db: Session,
    email: str,
    password: str,
    name: str | None = None,
) -> User:
    """Create an author account. Raises ValueError if the email is taken."""
    email = _normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ValueError("Email already exists")

    user = User(
        id=str(uuid4()),
        email=email,
        name=name or email.split("@")[0],
        hashed_password=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


# ============================================================
# TOKENS
# ============================================================

def create_access_token(data: dict) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    return jwt.encode(
        {**data, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )


def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    # a token can outlive its author (account removed, dev DB reset)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


# ============================================================
# DEPENDENCIES
# ============================================================

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    return _user_from_token(token, db)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous or stale tokens give None."""
    if not token:
        return None
    try:
        return _user_from_token(token, db)
    except HTTPException:
        return None
