import logging
from fastapi import APIRouter, Depends, HTTPException, status
from models.auth import AuthResponse, LoginRequest, RegisterRequest, Role, Session, UserSummary
from modules.rota.errors import RotaError
from services.auth_service import create_jwt_token, get_current_session, verify_password
from services.staff_service import get_staff_by_email, register_staff_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(staff: dict) -> AuthResponse:
    return AuthResponse(
        success=True,
        token=create_jwt_token(staff),
        user=UserSummary(
            id=str(staff["id"]),
            role=Role.parse(staff["role"]),
            fullName=staff["full_name"],
            email=staff["email"]
        )
    )


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest):
    """Staff login endpoint"""
    try:
        staff = await get_staff_by_email(request.email)
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred during login"
        )

    if not staff or not verify_password(request.password, staff["password_hash"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    logger.info(f"Login: {staff['id']} ({staff['role']})")
    return _auth_response(staff)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest):
    """Create an account and sign it in"""
    try:
        staff = await register_staff_member(request)
        return _auth_response(staff)
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        logger.error(f"Registration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed. Please try again."
        )


@router.get("/me")
async def get_me(session: Session = Depends(get_current_session)):
    """Get current authenticated staff info"""
    return {
        "success": True,
        "user": session
    }


@router.post("/logout")
async def logout(session: Session = Depends(get_current_session)):
    """Logout endpoint (client-side token removal)"""
    logger.info(f"Logout: {session.staff_id}")
    return {
        "success": True,
        "message": "Logged out successfully"
    }
