import logging

from fastapi import APIRouter, Depends

from .. import config, crud, mailer
from ..database.connection import get_db
from ..dependencies import SessionContext, get_session, require_admin
from ..errors import NotFound, PermissionDenied, ValidationError
from ..schemas import AdminCreate, LoginRequest, RegisterRequest, ValidateLoginRequest, VerifyRequest
from ..security import create_access_token, generate_code, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/register", status_code=201)
def register_user(body: RegisterRequest, db=Depends(get_db)):
    email_code = generate_code(config.EMAIL_CODE_LENGTH)
    crud.create_user(
        db, body.first_name, body.last_name, body.email,
        email_verified=False, email_verification_code=email_code,
    )
    mailer.send_verification_code(body.email, body.first_name, body.last_name, email_code)
    return {"message": "User registered successfully. Verification code sent to email."}


@router.post("/verify")
def verify_email(body: VerifyRequest, db=Depends(get_db)):
    user = crud.get_user_by_email(db, body.email)
    if not user:
        raise NotFound("User not found")

    stored_code = user.get("email_verification_code")
    if not body.email_code or not stored_code:
        raise ValidationError("No verification code provided or needed")
    if body.email_code != stored_code:
        raise ValidationError("Invalid email verification code")

    crud.update_user(db, user["_id"], {"email_verified": True}, unset=("email_verification_code",))
    return {"message": "Email verified successfully."}


@router.post("/login")
def login(body: LoginRequest, db=Depends(get_db)):
    """Mail a one-time login id and password to a verified user."""
    user = crud.get_user_by_email(db, body.email)
    if not user:
        raise NotFound("User not found")
    if not user.get("email_verified"):
        raise PermissionDenied("Email not verified")

    login_id = generate_code(config.LOGIN_ID_LENGTH)
    login_password = generate_code(config.LOGIN_PASSWORD_LENGTH)
    crud.update_user(db, user["_id"], {
        "login_id": login_id,
        "login_password_hash": hash_password(login_password),
    })
    mailer.send_login_credentials(user["email"], login_id, login_password)
    return {"message": "Login credentials sent to email"}


@router.post("/validate-login")
def validate_login(body: ValidateLoginRequest, db=Depends(get_db)):
    user = crud.get_user_by_email(db, body.email)
    if not user:
        raise NotFound("User not found")

    stored_hash = user.get("login_password_hash")
    if not (user.get("login_id") and stored_hash
            and user["login_id"] == body.login_id
            and verify_password(body.login_password, stored_hash)):
        raise ValidationError("Invalid login ID or password")

    token = create_access_token({
        "sub": str(user["_id"]),
        "email": user["email"],
        "role": user.get("role", "voter"),
    })
    # the login pair is single use
    crud.update_user(db, user["_id"], {}, unset=("login_id", "login_password_hash"))
    logger.info(f"User {user['email']} logged in")
    return {"message": "Login successful", "user": crud.serialize_user(user), "token": token}


@router.post("/admins", status_code=201)
def create_admin(body: AdminCreate, db=Depends(get_db), session: SessionContext = Depends(require_admin)):
    admin = crud.create_user(
        db, body.first_name, body.last_name, body.email,
        role="admin", email_verified=True,
    )
    logger.info(f"Admin {body.email} created by {session.email}")
    return {"message": "Admin user created successfully", "user": crud.serialize_user(admin)}


@router.get("/me")
def me(session: SessionContext = Depends(get_session)):
    return session.to_dict()
