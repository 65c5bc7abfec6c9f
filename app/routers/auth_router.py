# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.models.user import User
from app.routers.deps import get_db
from app.schemas.user_schemas import RegisterRequest
from app.utils.auth_utils import current_user_id
from app.utils.jwt_utils import issue_user_token
from app.utils.rate_limit_utils import limiter, REGISTER_RATE

router = APIRouter(prefix="/auth", tags=["Auth"])


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "push_enabled": bool(user.fcm_token),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/register", status_code=201)
@limiter.limit(REGISTER_RATE)
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(name=payload.name.strip(), email=email, fcm_token=payload.fcm_token)
    db.add(user)
    db.commit()
    db.refresh(user)

    token = issue_user_token(user.id)
    return {
        "success": True,
        "message": "🆕 Account created",
        "token": token,
        "user": serialize_user(user),
    }


@router.get("/me")
def me(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return {"success": True, "user": serialize_user(user)}
