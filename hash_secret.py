"""
Print a salted hash for ADMIN_PASSWORD or ADD_SCRIPT_KEY.

Usage:
    python hash_secret.py [secret]
"""

import argparse
import getpass

from werkzeug.security import generate_password_hash


def main():
    parser = argparse.ArgumentParser(description="Hash a secret for the .env file")
    parser.add_argument(
        "secret",
        nargs="?",
        default="",
        help="Secret to hash (prompted for when omitted)",
    )
    args = parser.parse_args()

    secret = args.secret or getpass.getpass("Secret: ")
    if not secret:
        raise SystemExit("Refusing to hash an empty secret")
    print(generate_password_hash(secret))


if __name__ == "__main__":
    main()
