"""FastAPI web application for realsauth."""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from realsauth.api.auth_models import (
    AuthResponse,
    CheckUserRequest,
    GooglePhoneRequest,
    GooglePhoneResponse,
    GoogleSignInRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    SendOtpEmailRequest,
    SetPasswordRequest,
    UpdateProfileRequest,
    UserResponse,
    VerifyPhoneRequest,
)
from realsauth.auth.dependencies import get_current_user_id, get_identity_service
from realsauth.config import settings
from realsauth.database.database import init_db
from realsauth.engine.reconciliation import IdentityService
from realsauth.errors import AuthError, ExternalServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="realsauth API",
    description="User registration, sign-in and profile service",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    extra = {}
    if isinstance(exc, ExternalServiceError) and exc.detail:
        extra["error"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, **extra))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:])
        messages.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(", ".join(messages)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body("Server error"))


def _server_error(operation: str, error: Exception) -> HTTPException:
    logger.exception(f"{operation} error: {type(error).__name__}: {error}")
    return HTTPException(status_code=500, detail="Server error")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, service: IdentityService = Depends(get_identity_service)):
    """Register a complete user (name, email, date of birth and gender required)."""
    try:
        result = service.register(
            name=body.name,
            email=body.email,
            date_of_birth=body.date_of_birth,
            gender=body.gender,
            phone=body.phone,
            password=body.password,
            is_phone_verified=body.is_phone_verified,
            is_email_verified=body.is_email_verified,
        )
        return AuthResponse(token=result.token, user=result.user.basic_profile())
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Register", e)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, service: IdentityService = Depends(get_identity_service)):
    try:
        result = service.login(body.email, body.password)
        return AuthResponse(token=result.token, user=result.user.basic_profile())
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Login", e)


@router.post("/verify-phone", response_model=AuthResponse)
def verify_phone(body: VerifyPhoneRequest, service: IdentityService = Depends(get_identity_service)):
    """Sign in with an already-verified phone number, creating the user on first contact."""
    try:
        result = service.verify_phone(body.phone)
        return AuthResponse(token=result.token, user=result.user.basic_profile())
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Verify phone", e)


@router.post("/google-signin", response_model=AuthResponse)
def google_sign_in(body: GoogleSignInRequest, service: IdentityService = Depends(get_identity_service)):
    try:
        result = service.google_sign_in(
            email=body.email,
            name=body.name,
            phone=body.phone,
            photo_url=body.photo_url,
            date_of_birth=body.date_of_birth,
            gender=body.gender,
            id_token=body.id_token,
        )
        return AuthResponse(token=result.token, user=result.user.basic_profile())
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Google sign-in", e)


@router.post("/google-phone", response_model=GooglePhoneResponse)
def google_phone(body: GooglePhoneRequest, service: IdentityService = Depends(get_identity_service)):
    """Fetch the phone number of the Google account behind a server auth code."""
    try:
        phone_number = service.google_phone_lookup(body.server_auth_code)
        return GooglePhoneResponse(phoneNumber=phone_number)
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Google phone number fetch", e)


@router.get("/check-google-config")
def check_google_config(service: IdentityService = Depends(get_identity_service)):
    return {"success": True, **service.google_config_status()}


@router.post("/update-profile", response_model=AuthResponse)
def update_profile(
    body: UpdateProfileRequest,
    user_id: str = Depends(get_current_user_id),
    service: IdentityService = Depends(get_identity_service),
):
    """Complete the authenticated user's profile and re-issue their token."""
    try:
        result = service.update_profile(
            user_id,
            name=body.name,
            date_of_birth=body.date_of_birth,
            gender=body.gender,
            phone=body.phone,
            is_phone_verified=body.is_phone_verified,
        )
        return AuthResponse(token=result.token, user=result.user.basic_profile())
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Update profile", e)


@router.post("/check-user", response_model=UserResponse)
def check_user(body: CheckUserRequest, service: IdentityService = Depends(get_identity_service)):
    try:
        user = service.check_user(phone=body.phone, email=body.email)
        profile = user.basic_profile()
        profile["canLoginWithPassword"] = user.can_login_with_password
        return UserResponse(user=profile)
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Check user", e)


@router.post("/set-password", response_model=MessageResponse)
def set_password(body: SetPasswordRequest, service: IdentityService = Depends(get_identity_service)):
    try:
        service.set_password(body.email, body.password)
        return MessageResponse(message="Password set successfully")
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Set password", e)


@router.post("/send-otp-email", response_model=MessageResponse)
def send_otp_email(body: SendOtpEmailRequest, service: IdentityService = Depends(get_identity_service)):
    """Email an OTP generated by the client."""
    try:
        otp = str(body.otp) if body.otp is not None else None
        service.send_otp_email(body.email, otp, name=body.name)
        return MessageResponse(message="OTP email sent successfully")
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Send OTP email", e)


@router.post("/logout", response_model=MessageResponse)
def logout(user_id: str = Depends(get_current_user_id)):
    # Tokens are stateless; the client discards its copy.
    logger.info(f"Logout for user: {user_id}")
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=UserResponse)
def get_profile(
    user_id: str = Depends(get_current_user_id),
    service: IdentityService = Depends(get_identity_service),
):
    try:
        return UserResponse(user=service.get_profile(user_id).full_profile())
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Get user profile", e)


@router.get("/me")
def me(
    user_id: str = Depends(get_current_user_id),
    service: IdentityService = Depends(get_identity_service),
):
    try:
        return service.get_profile(user_id).full_profile()
    except AuthError:
        raise
    except Exception as e:
        raise _server_error("Get current user", e)


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
