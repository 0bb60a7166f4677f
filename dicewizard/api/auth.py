import logging
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from dicewizard.api.deps import Deadline, get_current_user_id, get_db, get_settings
from dicewizard.auth import hash_password, verify_password, create_token
from dicewizard.config import Settings
from dicewizard.database import is_unique_violation
from dicewizard.errors import AuthenticationFailed, UserExists, UserNotFound
from dicewizard.models import User
from dicewizard.schemas import UserRegister, UserLogin, UserResponse, AuthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db),
                   config: Settings = Depends(get_settings), deadline: Deadline = Depends()):
    async def create_user():
        username = data.username.strip()
        existing = await db.execute(select(User.id).where(User.username == username))
        if existing.scalar_one_or_none() is not None:
            raise UserExists()
        user = User(username=username, password_hash=hash_password(data.password))
        db.add(user)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if is_unique_violation(e):
                raise UserExists()
            raise
        logger.info("User %s registered", user.id)
        return user

    user = await deadline(create_user())
    return AuthResponse(token=create_token(user.id, config), user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db),
                config: Settings = Depends(get_settings), deadline: Deadline = Depends()):
    result = await deadline(db.execute(select(User).where(User.username == data.username.strip())))
    user = result.scalar_one_or_none()
    if not user or not verify_password(data.password, user.password_hash):
        raise AuthenticationFailed("invalid username or password")
    return AuthResponse(token=create_token(user.id, config), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db),
             deadline: Deadline = Depends()):
    user = await deadline(db.get(User, user_id))
    if user is None:
        raise UserNotFound()
    return user
