from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db.models.user import User
from app.db.models.user_session import UserSession
from app.dependencies.auth import get_current_session, get_current_user
from app.utils.security import new_session_token, verify_password

router = APIRouter()


# ────────────────────────────────────────────────────────────────────
#  Pydantic DTOs
# ────────────────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    username: str
    password: str


class UserRead(BaseModel):
    id: int
    username: str
    name: str
    email: str | None = None
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


# ────────────────────────────────────────────────────────────────────
#  Login / logout
# ────────────────────────────────────────────────────────────────────
@router.post("/login")
def login(payload: LoginRequest,
          request: Request,
          db: Session = Depends(get_db)):
    """
    Basic login with username and password.
    Stores session token plus device/browser info in user_sessions table.
    """
    user = db.query(User).filter(User.username == payload.username).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=400, detail="Invalid username or password.")

    if not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid username or password.")

    session_token = new_session_token()

    user_agent = request.headers.get("User-Agent", "Unknown Agent")
    client_ip = request.client.host if request.client else None

    new_session = UserSession(
        user_id=user.id,
        token=session_token,
        ip_address=client_ip,
        client_name=user_agent[:120],  # avoid oversize
    )
    db.add(new_session)
    db.commit()

    return {
        "access_token": session_token,
        "token_type": "bearer",
    }


@router.post("/logout")
def logout(session: UserSession = Depends(get_current_session),
           db: Session = Depends(get_db)):
    """
    Logout by deleting the session behind the bearer token.
    """
    db.delete(session)
    db.commit()
    return {"detail": "Logged out."}


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user
