import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from fundtrack.api.deps import db
from fundtrack.core.errors import AuthError, ValidationError
from fundtrack.schemas.auth import LoginIn, TokenOut, MessageOut
from fundtrack.models.user import User
from fundtrack.core.security import hash_password, verify_password, create_access_token

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/create-admin", response_model=MessageOut, status_code=201)
def create_admin(body: LoginIn, s: Session = Depends(db)):
    username = (body.username or "").strip()
    if not username or not body.password:
        raise ValidationError("username_password_required")
    if s.execute(select(func.count(User.id))).scalar_one() > 0:
        raise ValidationError("admin_exists", "User already exists. Only one admin allowed.")
    s.add(User(username=username, password_hash=hash_password(body.password)))
    s.commit()
    log.info("admin account created username=%s", username)
    return {"message": "Admin user created successfully."}

@router.post("/login", response_model=TokenOut)
def login(body: LoginIn, s: Session = Depends(db)):
    u = s.execute(select(User).where(User.username == (body.username or ""))).scalar_one_or_none()
    if not u or not verify_password(body.password, u.password_hash):
        log.info("login rejected")
        raise AuthError()
    log.info("login ok username=%s", u.username)
    return {"token": create_access_token(sub=u.username)}
