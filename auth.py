from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Dict, Optional

import bcrypt
from flask import g, jsonify, request
from jose import ExpiredSignatureError, JWTError, jwt
from werkzeug.security import check_password_hash

import config

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800, "y": 31557600}
DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdwy]?)\s*$", re.IGNORECASE)


class AuthError(Exception):
    pass


class TokenMissing(AuthError):
    """No Authorization header at all (401)."""


class TokenInvalid(AuthError):
    """Bad signature, malformed or expired token (403)."""


class TokenExpired(TokenInvalid):
    pass


class InvalidCredentials(AuthError):
    pass


class RevocationStore:
    """Tokens that were logged out. Subclass to back it with something persistent."""

    def add(self, token: str) -> None:
        raise NotImplementedError

    def __contains__(self, token: str) -> bool:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryRevocationStore(RevocationStore):
    """Process-lifetime only: a restart forgets every revocation."""

    def __init__(self):
        self._tokens = set()

    def add(self, token: str) -> None:
        self._tokens.add(token)

    def __contains__(self, token: str) -> bool:
        return token in self._tokens

    def clear(self) -> None:
        self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)


revocations: RevocationStore = MemoryRevocationStore()


def parse_expiry(value) -> int:
    """Turn ``90``, ``30s``, ``15m``, ``1h`` or ``7d`` into seconds."""
    if isinstance(value, int):
        return value
    match = DURATION_RE.match(str(value or ""))
    if not match:
        raise ValueError(f"Invalid token expiry: {value!r}")
    amount, unit = match.groups()
    return int(amount) * DURATION_UNITS[(unit or "s").lower()]


def verify_secret(stored_hash: str, candidate: Optional[str]) -> bool:
    if not stored_hash or not candidate or not isinstance(candidate, str):
        return False
    if stored_hash.startswith(("$2a$", "$2b$", "$2y$")):
        try:
            return bcrypt.checkpw(candidate.encode(), stored_hash.encode())
        except ValueError:
            logger.error("Malformed bcrypt hash in configuration")
            return False
    return check_password_hash(stored_hash, candidate)


def check_credentials(username, password) -> bool:
    # Same answer for a bad user and a bad password.
    if username != config.ADMIN_USERNAME:
        return False
    return verify_secret(config.ADMIN_PASSWORD, password)


def issue_token(username: str, secret: str, expires_in: int) -> str:
    exp = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return jwt.encode({"username": username, "exp": exp}, secret, algorithm=TOKEN_ALGORITHM)


def decode_token(token: str, secret: str) -> Dict:
    if not token:
        raise TokenInvalid("empty token")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={"require_exp": True},
        )
    except ExpiredSignatureError as exc:
        raise TokenExpired("token expired") from exc
    except JWTError as exc:
        raise TokenInvalid(str(exc)) from exc


def token_from_header(header: Optional[str]) -> str:
    if not header:
        raise TokenMissing("no authorization header")
    parts = header.split(" ")
    return parts[1] if len(parts) > 1 else ""


def login(username, password) -> str:
    if not check_credentials(username, password):
        logger.warning("Failed login for %r", username)
        raise InvalidCredentials(username)
    logger.info("Issued token for %r", username)
    return issue_token(username, config.JWT_SECRET, parse_expiry(config.JWT_EXPIRY))


def verify(header: Optional[str]) -> Dict:
    """Validate signature and expiry of the bearer token in ``header``.

    The revocation set is only consulted when ``config.ENFORCE_REVOCATION``
    is on; otherwise a logged-out token keeps working until it expires.
    """
    token = token_from_header(header)
    payload = decode_token(token, config.JWT_SECRET)
    if config.ENFORCE_REVOCATION and token in revocations:
        raise TokenInvalid("token revoked")
    g.token = token
    g.user = payload
    return payload


def logout(token: str) -> bool:
    """Revoke ``token``. Returns False if it was already revoked."""
    if token in revocations:
        return False
    revocations.add(token)
    logger.info("Revoked token for %r", g.get("user", {}).get("username"))
    return True


def check_auth(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        try:
            verify(request.headers.get("Authorization"))
        except TokenMissing:
            return jsonify({"error": "Missing token"}), 401
        except TokenInvalid:
            return jsonify({"error": "Invalid token"}), 403
        return view(*args, **kwargs)

    return wrapped
