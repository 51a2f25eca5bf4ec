import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import Settings
from ..deps import get_app_settings, get_current_user, get_user_store
from ..errors import DuplicateUserError, bad_request
from ..models import User
from ..schemas import AuthResponse, LoginRequest, RegisterRequest, UserRead
from ..security import create_access_token, hash_password, verify_password
from ..stores.users import UserStore

logger = structlog.get_logger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User, settings: Settings) -> AuthResponse:
    return AuthResponse(user=UserRead.model_validate(user), token=create_access_token(user, settings))


# PUBLIC_INTERFACE
@auth_router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and return a bearer token.",
)
def register(
    payload: RegisterRequest,
    users: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    """Register a new user; email and username must be unused."""
    try:
        user = users.create(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            username=payload.username,
        )
    except DuplicateUserError as exc:
        raise bad_request(exc)
    logger.info("user_registered", user_id=user.id)
    return _auth_response(user, settings)


# PUBLIC_INTERFACE
@auth_router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Authenticate with an email or username and a password.",
)
def login(
    payload: LoginRequest,
    users: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    """
    Exchange credentials for a bearer token.

    An identifier containing '@' is looked up as an email, anything else as a
    username. Unknown users and wrong passwords get the same 401.
    """
    identifier = payload.identifier
    if not identifier:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Login is required")

    if "@" in identifier:
        user = users.find_by_email(identifier)
    else:
        user = users.find_by_username(identifier)

    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("login_failed")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info("login_succeeded", user_id=user.id)
    return _auth_response(user, settings)


# PUBLIC_INTERFACE
@auth_router.get("/me", response_model=UserRead, summary="Current user")
def me(user: User = Depends(get_current_user)) -> UserRead:
    """Return the authenticated user."""
    return UserRead.model_validate(user)
