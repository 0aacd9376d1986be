import os
from pathlib import Path

from dotenv import load_dotenv

# Paths
BASE_DIR = Path(__file__).parent
load_dotenv(BASE_DIR / ".env")

PUBLIC_DIR = BASE_DIR / "public"
POSTS_FILE = PUBLIC_DIR / "assets" / "data" / "posts.json"
IMAGES_DIR = PUBLIC_DIR / "assets" / "images"
INDEX_HTML = PUBLIC_DIR / "index.html"

# Server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "14000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Auth / tokens
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
# Salted hashes, see hash_secret.py
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
ADD_SCRIPT_KEY = os.getenv("ADD_SCRIPT_KEY", "")
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_EXPIRY = os.getenv("JWT_EXPIRY", "1h")

# Reject logged-out tokens on every protected route, not only on logout
ENFORCE_REVOCATION = os.getenv("ENFORCE_REVOCATION", "").lower() in ("1", "true", "yes")
