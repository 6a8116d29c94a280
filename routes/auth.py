# routes/auth.py
import logging

from fastapi import APIRouter, Depends

from db import get_conn
from deps.auth import get_current_user, CurrentUser
from security import verify_password, create_access_token
from schemas import LoginRequest, LoginResponse, UserItem
from services.errors import UnauthenticatedError
from services.users import get_user_by_email

logger = logging.getLogger("vendorpay.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest):
    with get_conn() as conn:
        row = get_user_by_email(conn, body.email)

    if not row or not verify_password(body.password, row["password_hash"]):
        logger.info("login rejected")
        raise UnauthenticatedError("Invalid email or password")

    token = create_access_token(sub=str(row["id"]), role=row["role"])
    return LoginResponse(
        token=token,
        user=UserItem(id=row["id"], email=row["email"], role=row["role"]),
    )


@router.get("/me", response_model=UserItem)
def me(user: CurrentUser = Depends(get_current_user)):
    return UserItem(id=user.user_id, email=user.email, role=user.role)
