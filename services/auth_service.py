import bcrypt
import jwt
from datetime import datetime, timedelta
from typing import Dict, Any
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from config.settings import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRATION_HOURS
from models.auth import Role, Session

security = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash"""
    return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))


def create_jwt_token(staff_data: Dict[str, Any]) -> str:
    """Create JWT token"""
    payload = {
        "staff_id": str(staff_data["id"]),
        "email": staff_data["email"],
        "full_name": staff_data["full_name"],
        "role": Role.parse(staff_data["role"]).value,
        "exp": datetime.utcnow() + timedelta(hours=JWT_EXPIRATION_HOURS),
        "iat": datetime.utcnow()
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_session(token: str) -> Session:
    """Decode a bearer token into a Session; raises HTTP 401 on any failure."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return Session(
            staff_id=payload["staff_id"],
            email=payload["email"],
            full_name=payload["full_name"],
            role=Role.parse(payload["role"])
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )


def get_current_session(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Session:
    """Verify JWT token and return the caller's session"""
    return decode_session(credentials.credentials)


def require_manager(session: Session = Depends(get_current_session)) -> Session:
    """Require the Manager role"""
    if not session.is_manager:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only managers can perform this action"
        )
    return session


def ensure_self_or_manager(session: Session, user_id: str) -> None:
    """Employees may only act on their own records; managers on anyone's."""
    if session.role is Role.MANAGER:
        return
    elif session.role is Role.EMPLOYEE:
        if session.staff_id != str(user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied"
            )
        return
    raise AssertionError(f"Unhandled role: {session.role}")
