# deps/auth.py
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from uuid import UUID

from db import get_conn
from security import decode_token
from services.errors import UnauthenticatedError
from services.users import get_user_by_id

bearer = HTTPBearer(auto_error=False)

class CurrentUser:
    def __init__(self, user_id: UUID, email: str = "", role: str = ""):
        self.user_id = user_id
        self.email = email
        self.role = role

    def __repr__(self) -> str:
        return f"CurrentUser(user_id={self.user_id!s}, role={self.role})"

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> CurrentUser:
    if not creds:
        raise UnauthenticatedError("Missing or invalid token")

    # must be "Bearer"
    if (creds.scheme or "").lower() != "bearer":
        raise UnauthenticatedError("Missing or invalid token")

    payload = decode_token(creds.credentials)
    sub = payload.get("sub")
    if not sub:
        raise UnauthenticatedError("Invalid token")
    try:
        user_id = UUID(str(sub))
    except ValueError:
        raise UnauthenticatedError("Invalid token") from None

    # role and email come from the directory, not the token, so a role change
    # takes effect on the next request
    with get_conn() as conn:
        row = get_user_by_id(conn, user_id)

    if not row:
        raise UnauthenticatedError("User not found")
    return CurrentUser(user_id=row["id"], email=row["email"], role=row["role"])
