import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
ADMINS_FILE = "admins.json"
USERS_FILE = "users.json"
POSTS_FILE = "blogs.json"

# Site metadata
SITE_TITLE = os.getenv("SITE_TITLE", "bareblog")

# Server
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Auth / session
SECRET_KEY = os.getenv("SESSION_SECRET") or os.getenv("SECRET_KEY", "dev-secret-change-me")
SESSION_LIFETIME = timedelta(hours=8)
PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
