from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ..database import get_db, get_supabase
from ..dependencies.permissions import get_current_user
from ..models.user import User
from ..schemas.auth import RegisterRequest, LoginRequest, LoginResponse
from ..utils.router_helpers import RouterResponse, error_detail
from supabase import Client
import logging

router = APIRouter(tags=["authentication"])
logger = logging.getLogger(__name__)


def _auth_failure(code: int, message: str, error_code: str) -> HTTPException:
    return HTTPException(status_code=code, detail=error_detail(message, error_code))


@router.post("/register", response_model=dict, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: RegisterRequest,
    db: Session = Depends(get_db),
    supabase: Client = Depends(get_supabase),
):
    """Create a Supabase account and its local profile"""
    if User.find_by_email(db, user_data.email):
        raise _auth_failure(
            status.HTTP_400_BAD_REQUEST, "Email already registered", "EMAIL_TAKEN"
        )

    try:
        auth_response = supabase.auth.sign_up(
            {
                "email": user_data.email,
                "password": user_data.password,
                "options": {"data": {"name": user_data.name}},
            }
        )
    except Exception as e:
        logger.error(f"Supabase sign-up failed for {user_data.email}: {e}")
        auth_response = None

    if not auth_response or not auth_response.user:
        raise _auth_failure(
            status.HTTP_400_BAD_REQUEST, "Registration failed", "REGISTRATION_FAILED"
        )

    user = User(
        email=user_data.email,
        name=user_data.name,
        supabase_id=auth_response.user.id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")

    return RouterResponse.created(
        data={"user_id": user.id, "email": user.email},
        message="Registration successful. Please check your email to verify your account.",
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    supabase: Client = Depends(get_supabase),
):
    """Exchange email and password for a Supabase access token"""
    try:
        auth_response = supabase.auth.sign_in_with_password(
            {"email": login_data.email, "password": login_data.password}
        )
    except Exception as e:
        logger.info(f"Login rejected for {login_data.email}: {e}")
        auth_response = None

    if not auth_response or not auth_response.user or not auth_response.session:
        raise _auth_failure(
            status.HTTP_401_UNAUTHORIZED, "Invalid email or password", "INVALID_CREDENTIALS"
        )

    user = User.sync_from_auth(db, auth_response.user)

    return LoginResponse(
        access_token=auth_response.session.access_token,
        expires_in=auth_response.session.expires_in,
        user=user.to_dict(),
    )


@router.get("/me", response_model=dict)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return RouterResponse.success(data=current_user.to_dict())
