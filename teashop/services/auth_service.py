"""Authentication service: password hashing, sessions, staff and customer sign-in"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from teashop.models.user import User, UserRole, UserSession
from teashop.models.customer import Customer
from teashop.config import get_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)

STAFF = "staff"
CUSTOMER = "customer"


@dataclass
class Principal:
    """Whoever a session token resolves to; attached to request.state by the middleware."""
    kind: str  # staff | customer
    id: int
    email: str | None
    name: str
    role: str | None = None

    @property
    def is_staff(self) -> bool:
        return self.kind == STAFF

    @property
    def is_customer(self) -> bool:
        return self.kind == CUSTOMER


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Verify staff credentials and return the user, or None."""
    user = db.query(User).filter(User.email == email.lower().strip(), User.is_active == True).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    user.last_login = datetime.utcnow()
    db.commit()
    return user


def authenticate_customer(db: Session, email: str, password: str) -> Customer | None:
    """Verify storefront credentials; customers without a password cannot sign in."""
    customer = (
        db.query(Customer)
        .filter(
            Customer.email == email.lower().strip(),
            Customer.is_active == True,
            Customer.is_deleted == False,
        )
        .first()
    )
    if not customer or not customer.password_hash or not verify_password(password, customer.password_hash):
        return None
    customer.last_login = datetime.utcnow()
    db.commit()
    return customer


def create_session(db: Session, principal_id: int, principal_type: str = STAFF) -> str:
    """Create a new session token for a staff user or customer."""
    settings = get_settings()
    token = secrets.token_hex(32)
    session = UserSession(
        principal_type=principal_type,
        principal_id=principal_id,
        token=token,
        expires_at=datetime.utcnow() + timedelta(hours=settings.session_duration_hours),
    )
    db.add(session)
    db.commit()
    return token


def validate_session(db: Session, token: str) -> Principal | None:
    """Return the principal for a valid, non-expired session token."""
    session = (
        db.query(UserSession)
        .filter(UserSession.token == token, UserSession.expires_at > datetime.utcnow())
        .first()
    )
    if not session:
        return None

    if session.principal_type == STAFF:
        user = db.query(User).filter(User.id == session.principal_id, User.is_active == True).first()
        if not user:
            return None
        return Principal(kind=STAFF, id=user.id, email=user.email, name=user.name, role=user.role.value)

    customer = (
        db.query(Customer)
        .filter(
            Customer.id == session.principal_id,
            Customer.is_active == True,
            Customer.is_deleted == False,
        )
        .first()
    )
    if not customer:
        return None
    return Principal(kind=CUSTOMER, id=customer.id, email=customer.email, name=customer.name)


def delete_session(db: Session, token: str) -> None:
    """Remove a session (logout)."""
    db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()


def cleanup_expired(db: Session) -> int:
    """Delete expired sessions. Returns count removed."""
    count = db.query(UserSession).filter(UserSession.expires_at <= datetime.utcnow()).delete()
    db.commit()
    return count


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.STAFF,
) -> User:
    """Create a new staff account."""
    user = User(
        email=email.lower().strip(),
        password_hash=hash_password(password),
        name=name,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_initial_user(db: Session) -> None:
    """Create the first admin user from env vars if no users exist."""
    settings = get_settings()
    if not settings.initial_admin_email or not settings.initial_admin_password:
        return
    # Skip if any users already exist
    if db.query(User).first():
        return
    create_user(
        db,
        settings.initial_admin_email,
        settings.initial_admin_password,
        settings.initial_admin_name or "Admin",
        UserRole.ADMIN,
    )
    logger.info(f"Seeded initial admin user: {settings.initial_admin_email}")
