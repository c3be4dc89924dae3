from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from taskai.database import get_db
from taskai.repository import UserRepository
from taskai.schemas.user import Identity, UserCreate, UserLogin, UserOut
from taskai.utils.auth import create_identity_token, decode_identity

router = APIRouter(prefix="/auth", tags=["auth"])


def _extract_token(authorization: Optional[str], token_query: Optional[str]) -> Optional[str]:
    """Return token from Authorization header (Bearer ...) or token query param (compat).
    Header has precedence.
    """
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return token_query


def get_current_user(authorization: Optional[str] = Header(None), token: Optional[str] = None) -> Identity:
    return decode_identity(_extract_token(authorization, token))


@router.post("/register", response_model=UserOut)
def register(user: UserCreate, db: Session = Depends(get_db)):
    return UserRepository(db).create_user(user.name, user.email, user.password, user.image)


@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = UserRepository(db).authenticate(user.email, user.password)
    if not db_user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"token": create_identity_token(db_user)}


@router.get("/me", response_model=Identity)
def me(identity: Identity = Depends(get_current_user)):
    return identity
