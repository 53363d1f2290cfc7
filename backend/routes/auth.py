# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from repositories.errors import ConflictError
from repositories.user import UserRepository
from schemas import user as schemas
from utils.audit import write_log
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(user: schemas.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        access_token=create_access_token(user),
        user=schemas.UserProfile.model_validate(user),
    )


# Register a new user
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, request: Request, db: Session = Depends(get_db)):
    users = UserRepository(db)

    # Check for existing user
    if users.find_by_email(payload.email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=request.client.host if request.client else None,
                  meta={"email": payload.email, "reason": "Email exists"})
        raise HTTPException(status_code=409, detail="User with this email already exists")

    try:
        user = users.create_user(schemas.UserPatch(
            email=payload.email,
            password_hash=get_password_hash(payload.password),
            name=payload.name,
            address=payload.address or "",
            phone=payload.phone or "",
            role=settings.DEFAULT_ROLE,
        ))
    except ConflictError:
        # Lost a race with a concurrent registration of the same email
        raise HTTPException(status_code=409, detail="User with this email already exists")

    # Log successful registration event
    write_log(db, user_id=user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=request.client.host if request.client else None, meta={"email": user.email})

    return _auth_response(user)


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = UserRepository(db).find_by_email(payload.email)

    # Validate credentials and log failure on error
    if not user or not verify_password(payload.password, user.password_hash):
        write_log(db, user_id=(user.id if user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=request.client.host if request.client else None,
                  meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    # Log successful login event
    write_log(db, user_id=user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=request.client.host if request.client else None,
              meta={"email": user.email})

    return _auth_response(user)


# Retrieve current authenticated user details
@router.get("/profile", response_model=schemas.UserProfile)
def profile(current_user: schemas.User = Depends(get_current_user)):
    return schemas.UserProfile.model_validate(current_user)
