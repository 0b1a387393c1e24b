from fastapi import APIRouter, Cookie, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import SESSION_COOKIE
from app.core.config import get_cookie_secure, get_session_max_age
from app.core.logging import get_logger
from app.core.security import hash_password, new_id, new_session_id, verify_password
from app.db.repository import now_ms
from app.db.session import get_db
from app.models.auth_session import AuthSession
from app.models.user import User
from app.schemas.auth import LoginRequest, SignupRequest

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = get_logger(__name__)

RESET_DISABLED = "Password reset functionality is currently disabled."


def _public_user(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email}


def _start_session(db: Session, user: User, body: dict, status_code: int = 200) -> JSONResponse:
    session_id = new_session_id()
    db.add(AuthSession(id=session_id, user_id=user.id, created_at=now_ms()))
    db.commit()
    logger.info("Created session %s... for user %s", session_id[:5], user.id)

    response = JSONResponse(body, status_code=status_code)
    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        max_age=get_session_max_age(),
        path="/",
        httponly=True,
        samesite="lax",
        secure=get_cookie_secure(),
    )
    return response


@router.post("/signup")
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    name = (data.name or "").strip()
    email = (data.email or "").strip().lower()
    if not name or not email or not data.password:
        raise HTTPException(status_code=400, detail="Name, email and password are required")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="User with this email already exists")

    user = User(
        id=new_id(),
        name=name,
        email=email,
        password_hash=hash_password(data.password),
        created_at=now_ms(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _start_session(db, user, {"user": _public_user(user)}, status_code=201)


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    email = (data.email or "").strip().lower()
    if not email or not data.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _start_session(db, user, {"user": _public_user(user)})


@router.post("/logout")
def logout(
    session_id: str | None = Cookie(None, alias=SESSION_COOKIE),
    db: Session = Depends(get_db),
):
    if session_id:
        deleted = db.query(AuthSession).filter(AuthSession.id == session_id).delete()
        db.commit()
        if not deleted:
            logger.info("Session not found in store: %s...", session_id[:5])
    response = JSONResponse({"success": True})
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response


@router.get("/user")
def current_user(
    session_id: str | None = Cookie(None, alias=SESSION_COOKIE),
    db: Session = Depends(get_db),
):
    if not session_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    session = db.query(AuthSession).filter(AuthSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=401, detail="Invalid session")
    user = db.query(User).filter(User.id == session.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": _public_user(user)}


@router.post("/forgot-password")
def forgot_password():
    return JSONResponse({"success": False, "message": RESET_DISABLED}, status_code=501)


@router.get("/verify-reset-token")
def verify_reset_token():
    return JSONResponse({"success": False, "message": RESET_DISABLED}, status_code=501)
