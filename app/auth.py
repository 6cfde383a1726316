from sqlalchemy.orm import Session

from passlib.context import CryptContext

from app.infrastructure.db.models import User

# pbkdf2_sha256: primary (no native deps)
# bcrypt: verify-only for imported hashes
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated=["bcrypt"])

MIN_PASSWORD_LENGTH = 8


class AuthenticationError(Exception):
    pass


class RegistrationError(ValueError):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Raises:
        AuthenticationError: unknown email or wrong password
    """
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    return user


def register_user(db: Session, email: str, password: str) -> User:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise RegistrationError("Invalid email")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise RegistrationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if get_user_by_email(db, email):
        raise RegistrationError("Email is already registered")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    db.flush()
    db.commit()
    return user
