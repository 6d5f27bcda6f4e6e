# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

ACCOUNT MODEL: Accounts are never self-created. They come from an approved
registration request (temporary password, must_change_password=True) or
from the create-admin bootstrap command. Email is the login identifier.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re
import secrets
import string

from ..constants import Department, Role
from ..extensions import db
from ..models import User, UserRole
from ..validation import ConflictError, NotFoundError, ValidationError
from ..time_utils import utcnow


SPECIAL_CHARACTERS = "!@#$%^&*(),.'\":{}|<>"


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if password is None or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed hashes verify as False.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def generate_temporary_password(length: int = 12) -> str:
    """
    Generate a random password that satisfies validate_password_strength.

    Handed to newly approved users, who must change it on first login.
    """
    alphabet = string.ascii_letters + string.digits + SPECIAL_CHARACTERS
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(SPECIAL_CHARACTERS),
    ]
    rest = [secrets.choice(alphabet) for _ in range(max(length, 8) - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_user(
    email: str,
    full_name: str,
    password: str,
    *,
    must_change_password: bool = False,
    commit: bool = True,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ConflictError: If the email is already registered
        PasswordValidationError: If password doesn't meet requirements
    """
    email = normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("email must be a valid email address")
    if not (full_name or "").strip():
        raise ValidationError("full_name is required")

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise ConflictError("A user with this email already exists")

    user = User(
        email=email,
        full_name=full_name.strip(),
        password_hash=hash_password(password),
        must_change_password=must_change_password,
        is_active=True,
    )

    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def assign_role(user_id: int, role: str, department: str, *, commit: bool = True) -> UserRole:
    """
    Assign the user's role and department.

    A user holds exactly one assignment; an existing one is replaced.
    """
    if role not in Role.ALL:
        raise ValidationError(f"role must be one of: {', '.join(Role.ALL)}")
    if department not in Department.ALL:
        raise ValidationError(f"department must be one of: {', '.join(Department.ALL)}")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    assignment = db.session.query(UserRole).filter_by(user_id=user_id).first()
    if assignment is None:
        assignment = UserRole(user_id=user_id, role=role, department=department)
        db.session.add(assignment)
    else:
        assignment.role = role
        assignment.department = department
        assignment.assigned_at = utcnow()

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return assignment


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def change_password(user: User, current_password: str, new_password: str) -> User:
    """
    Replace the user's password after verifying the current one.

    Clears must_change_password. Session revocation is the caller's job.
    """
    if not verify_password(current_password, user.password_hash):
        raise PasswordValidationError("Current password is incorrect")
    if current_password == new_password:
        raise PasswordValidationError("New password must differ from the current password")

    user.password_hash = hash_password(new_password)
    user.must_change_password = False
    db.session.commit()
    return user


def create_admin(email: str, full_name: str, password: str, department: str = Department.IT) -> User:
    """Bootstrap an administrator account (CLI only)."""
    user = create_user(email, full_name, password, commit=False)
    assign_role(user.id, Role.ADMIN, department, commit=False)
    db.session.commit()
    return user
