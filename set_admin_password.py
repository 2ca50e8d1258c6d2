"""
Create an admin account or reset its password in data/admins.json.

Usage:
    python set_admin_password.py admin@example.com --name "Site Admin"
"""

import argparse
import getpass

import accounts
import config
from errors import BlogError


def prompt_password() -> str:
    password = getpass.getpass("Admin password: ")
    if password != getpass.getpass("Repeat password: "):
        raise SystemExit("Passwords do not match")
    return password


def main(argv=None):
    parser = argparse.ArgumentParser(description="Set the password hash of an admin account")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument("--name", default=None, help="Display name for the admin")
    args = parser.parse_args(argv)

    try:
        admin = accounts.set_admin_password(args.email.strip(), prompt_password(), name=args.name)
    except BlogError as exc:
        raise SystemExit(str(exc))

    print(f"Password set for {admin['email']} ({admin['name']}) in {config.DATA_DIR / config.ADMINS_FILE}")


if __name__ == "__main__":
    main()
