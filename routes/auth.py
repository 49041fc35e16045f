from fastapi import APIRouter, HTTPException, Depends, Cookie, Response
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, Literal
from config import COOKIE_SECURE, SESSION_HOURS
from db.users import create_user, authenticate_user, create_session, delete_session
from dependencies import get_current_user

router = APIRouter(prefix="/api/auth", tags=["auth"])

SESSION_COOKIE = "session_token"


# --- Pydantic Models ---

class Credentials(BaseModel):
    username: str
    password: str


class Registration(Credentials):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    email: Optional[str] = None


class Account(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: Literal['admin', 'user']


class Registered(BaseModel):
    message: str = "User created successfully"
    user_id: int


class LoggedIn(BaseModel):
    message: str = "Login successful"
    user: Account


class Message(BaseModel):
    message: str


def _account(user: Dict[str, Any]) -> Account:
    return Account(id=user['id'], username=user['username'], email=user.get('email'), role=user['role'])


# --- Routes ---

@router.post("/register")
async def register(data: Registration) -> Registered:
    """Create a regular user account; the role is never taken from the request"""
    user_id = create_user(data.username, data.password, data.email)
    if not user_id:
        raise HTTPException(status_code=400, detail="Username already exists")
    return Registered(user_id=user_id)


@router.post("/login")
async def login(data: Credentials, response: Response) -> LoggedIn:
    """Check credentials and start a cookie session"""
    user = authenticate_user(data.username, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")

    response.set_cookie(
        key=SESSION_COOKIE,
        value=create_session(user['id'], expires_hours=SESSION_HOURS),
        httponly=True,
        secure=COOKIE_SECURE,
        max_age=SESSION_HOURS * 3600,
        samesite="lax"
    )
    return LoggedIn(user=_account(user))


@router.post("/logout")
async def logout(
    response: Response,
    token: Optional[str] = Cookie(None, alias=SESSION_COOKIE)
) -> Message:
    if token:
        delete_session(token)
    response.delete_cookie(key=SESSION_COOKIE)
    return Message(message="Logout successful")


@router.get("/me")
async def get_me(current_user: Dict[str, Any] = Depends(get_current_user)) -> Account:
    return _account(current_user)
