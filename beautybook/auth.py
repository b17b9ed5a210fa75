import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .config import AUTH_JWT_ALGORITHM, AUTH_JWT_SECRET
from .database import get_db
from .models import GUEST_AUTH_PREFIX, ROLE_CUSTOMER, CustomerProfile, ProviderProfile, User
from .shared.errors import ForbiddenError, NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_session_token(token: str) -> dict:
    """
    Verify a session token issued by the identity provider.

    Returns the decoded claims. The subject claim identifies the user.
    """
    try:
        claims = jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.warning(f"⚠️ Session token rejected: {e}")
        raise UnauthorizedError("Invalid or expired session token") from e

    if not claims.get("sub"):
        logger.error(f"❌ Token missing subject claim. Available claims: {list(claims.keys())}")
        raise UnauthorizedError("Invalid token claims")
    return claims


def _create_user_from_claims(db: Session, claims: dict) -> User:
    email = claims.get("email")
    if not email:
        raise UnauthorizedError("Token has no email claim for a new account")

    # Guests who booked without an account claim it on first sign-in
    guest = db.query(User).filter(User.email == email.lower(), User.auth_id.startswith(GUEST_AUTH_PREFIX, autoescape=True)).first()
    if guest:
        guest.auth_id = claims["sub"]
        guest.image_url = guest.image_url or claims.get("picture")
        db.commit()
        db.refresh(guest)
        logger.info(f"🔗 Guest account claimed: {guest.email}")
        return guest

    logger.info(f"🆕 Creating new user: {email}")
    user = User(
        auth_id=claims["sub"],
        email=email.lower(),
        first_name=claims.get("given_name") or claims.get("first_name"),
        last_name=claims.get("family_name") or claims.get("last_name"),
        image_url=claims.get("picture"),
        role=ROLE_CUSTOMER,
    )
    user.customer_profile = CustomerProfile()
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"✅ New user created: {user.email}")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user, creating the local record on first sign-in"""
    if not credentials:
        raise UnauthorizedError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    claims = decode_session_token(credentials.credentials)

    user = db.query(User).filter(User.auth_id == claims["sub"]).first()
    if not user:
        user = _create_user_from_claims(db, claims)

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_provider(user: User = Depends(get_current_user)) -> ProviderProfile:
    """Require a provider profile on the authenticated user"""
    if not user.provider_profile:
        logger.warning(f"⚠️ User {user.email} attempted a provider-only route")
        raise ForbiddenError("Provider profile required")
    return user.provider_profile


async def get_current_customer_profile(
    user: User = Depends(get_current_user),
) -> CustomerProfile:
    """Require a customer profile on the authenticated user"""
    if not user.customer_profile:
        raise NotFoundError("Customer profile not found")
    return user.customer_profile


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Authenticated user when a token is sent, None for anonymous requests"""
    if not credentials:
        return None
    return await get_current_user(credentials, db)
