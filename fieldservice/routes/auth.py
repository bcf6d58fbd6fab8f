import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_current_user
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_LIMIT_WINDOW_SECONDS
from ..database import get_db
from ..models import User
from ..rate_limiter import create_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginCodeRequest(BaseModel):
    code: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    organization_id: int
    email: str
    full_name: str | None
    role: str

    class Config:
        from_attributes = True


# Login codes are short, so guessing is throttled per client IP
rate_limit_login_code = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT,
    window_seconds=LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    key_prefix="login_code",
    use_ip=True,
)


@router.post("/login-code", response_model=TokenResponse)
async def login_with_code(
    data: LoginCodeRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_login_code),
):
    """Exchange a personal login code for an access token"""
    code = data.code.strip().upper()
    user = db.query(User).filter(User.login_code == code).first()
    if not user or not user.is_active:
        logger.warning("⚠️ Login attempt with invalid code")
        raise HTTPException(status_code=401, detail="Invalid login code")

    logger.info(f"✅ User {user.id} logged in with login code")
    return TokenResponse(access_token=create_access_token({"sub": user.id, "org": user.organization_id}))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
