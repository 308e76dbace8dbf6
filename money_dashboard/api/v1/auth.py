"""Registration, login, logout, and the current user"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from money_dashboard.api.dependencies import get_current_user, get_request_id
from money_dashboard.api.v1.schemas import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserResponse
from money_dashboard.config import settings
from money_dashboard.domain.exceptions import AuthenticationError, DuplicateUserError
from money_dashboard.infrastructure.database.models import User
from money_dashboard.infrastructure.database.repositories import SessionRepository, UserRepository
from money_dashboard.infrastructure.database.session import get_db
from money_dashboard.infrastructure.security import hash_password, new_session_id, verify_password

router = APIRouter(prefix="/auth")


def _start_session(db: Session, response: Response, user: User) -> None:
    session_id = new_session_id()
    SessionRepository(db).create_session(session_id, user.id, settings.session_ttl_seconds)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    users = UserRepository(db)

    try:
        if users.get_by_email(body.email) is not None:
            raise DuplicateUserError("User already exists")

        user = users.create_user(body.email, hash_password(body.password), body.name)
        _start_session(db, response, user)
        db.commit()

        logging.info("User registered", extra={"request_id": request_id, "user_id": user.id})
        return AuthResponse(user=UserResponse.model_validate(user))

    except DuplicateUserError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    request_id = get_request_id(request)

    try:
        user = UserRepository(db).get_by_email(body.email)
        if user is None or not verify_password(body.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        _start_session(db, response, user)
        db.commit()

        logging.info("User logged in", extra={"request_id": request_id, "user_id": user.id})
        return AuthResponse(user=UserResponse.model_validate(user))

    except AuthenticationError as e:
        logging.warning("Failed login", extra={"request_id": request_id})
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    session_id = request.cookies.get(settings.session_cookie_name)
    if session_id:
        SessionRepository(db).delete_session(session_id)
        db.commit()
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
