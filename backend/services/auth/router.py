from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shared.database.base import get_db
from shared.database.models import User
from shared.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
    UserSignup,
)
from shared.utils.email import EmailSender, get_email_sender
from shared.utils.security import COOKIE_NAME
from .dependencies import get_current_user
from .service import AuthService, create_send_token

router = APIRouter(
    prefix="/users",
    tags=["Authentication & Users"]
)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(user_in: UserSignup, db: Session = Depends(get_db)):
    user = AuthService.signup(db=db, user_in=user_in)
    return create_send_token(user, status.HTTP_201_CREATED)


@router.post("/login")
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    user = AuthService.login(db, login_data.email, login_data.password)
    return create_send_token(user)


@router.get("/logout")
def logout():
    response = JSONResponse(content={"status": "success"})
    response.set_cookie(COOKIE_NAME, "loggedout", max_age=10, httponly=True)
    return response


@router.post("/forgot-password")
def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender)
):
    AuthService.forgot_password(
        db,
        data.email,
        reset_url_for=lambda token: str(request.url_for("reset_password", token=token)),
        mailer=mailer,
    )
    return {
        "status": "success",
        "message": "Token enviado al email"
    }


@router.patch("/reset-password/{token}")
def reset_password(token: str, data: ResetPasswordRequest, db: Session = Depends(get_db)):
    user = AuthService.reset_password(db, token, data.password)
    return create_send_token(user)


@router.patch("/update-password")
def update_password(
    data: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = AuthService.update_password(db, current_user, data.password_current, data.password)
    return create_send_token(user)
