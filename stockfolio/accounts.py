import uuid

from stockfolio.config import Settings
from stockfolio.errors import ValidationError
from stockfolio.models import User
from stockfolio.security import create_access_token, hash_password, verify_password
from stockfolio.stores.base import UserStore
from stockfolio.telemetry import get_logger


logger = get_logger(__name__)


async def signup(user_store: UserStore, email: str, password: str) -> User:
    user = User(
        owner_id=uuid.uuid4().hex,
        email=email.strip().lower(),
        password_hash=hash_password(password),
    )
    created = await user_store.create(user)
    logger.info("user_registered", extra={"owner_id": created.owner_id})
    return created


async def login(user_store: UserStore, settings: Settings, email: str, password: str | None = None) -> str:
    """Issue an access token for a registered email.

    The password is checked whenever one is supplied; it is only mandatory
    when ``login_requires_password`` is enabled.
    """
    user = await user_store.get_by_email(email.strip().lower())
    if user is None:
        logger.info("login_rejected", extra={"reason": "unknown_email"})
        raise ValidationError("No user record found for the provided email")

    if password is None and settings.login_requires_password:
        raise ValidationError("Password is required")
    if password is not None and not verify_password(password, user.password_hash):
        logger.info("login_rejected", extra={"owner_id": user.owner_id, "reason": "bad_password"})
        raise ValidationError("Invalid email or password")

    logger.info("login_succeeded", extra={"owner_id": user.owner_id, "admin": user.is_admin})
    return create_access_token(user, settings)
