from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

import config
import store
from errors import AdminNotConfigured, DuplicateEmail, InvalidCredentials, MissingCredentials

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def role_file(role: str) -> str:
    return config.ADMINS_FILE if role == ROLE_ADMIN else config.USERS_FILE


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=config.PASSWORD_HASH_METHOD)


def password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # hash written by some other scheme
        return False


def find_account(email: str) -> Optional[Dict]:
    """Look an email up in the admins file, then the users file.

    The returned record is a copy tagged with its ``role``.
    """
    for role in (ROLE_ADMIN, ROLE_USER):
        for record in store.read_collection(role_file(role)):
            if record.get("email") == email:
                return {**record, "role": role}
    return None


def email_taken(email: str) -> bool:
    return find_account(email) is not None


def display_name(account: Dict) -> str:
    if account.get("name"):
        return account["name"]
    if account["role"] == ROLE_ADMIN:
        return "Admin"
    return account["email"].split("@")[0]


def authenticate(email: str, password: str) -> Dict:
    """Check credentials and return the session identity.

    Raises InvalidCredentials for an unknown email or a wrong password and
    AdminNotConfigured when the matching admin has no hash on file.
    """
    account = find_account(email)
    if account is None:
        raise InvalidCredentials()
    if account["role"] == ROLE_ADMIN and not account.get("password_hash"):
        raise AdminNotConfigured()
    if not password_matches(account.get("password_hash") or "", password or ""):
        raise InvalidCredentials()
    return {"email": email, "name": display_name(account), "role": account["role"]}


def register(name: str, email: str, password: str) -> Dict:
    if not email or not password:
        raise MissingCredentials()
    if email_taken(email):
        raise DuplicateEmail()

    users = store.read_collection(config.USERS_FILE)
    record = {
        "name": name or "",
        "email": email,
        "password_hash": hash_password(password),
        "createdAt": now_iso(),
    }
    users.append(record)
    store.write_collection(config.USERS_FILE, users)
    logger.info("Registered user %s", email)
    return record


def set_admin_password(email: str, password: str, name: Optional[str] = None) -> Dict:
    """Create or update an admin record with a freshly hashed password."""
    if not email or not password:
        raise MissingCredentials()
    users = store.read_collection(config.USERS_FILE)
    if any(u.get("email") == email for u in users):
        raise DuplicateEmail(f"{email} is already a user account")

    admins = store.read_collection(config.ADMINS_FILE)
    admin = next((a for a in admins if a.get("email") == email), None)
    if admin is None:
        admin = {"email": email, "name": name or "Admin"}
        admins.append(admin)
    elif name:
        admin["name"] = name
    admin["password_hash"] = hash_password(password)
    store.write_collection(config.ADMINS_FILE, admins)
    logger.info("Password set for admin %s", email)
    return admin
