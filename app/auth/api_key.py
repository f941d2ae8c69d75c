"""
API key identities.

Each stored key resolves to one caller: user id, role and the display name
recorded as owner username on content they create. Only SHA-256 hashes are
kept on disk; the plain key is shown once, when it is issued.
"""

import hashlib
import json
import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from app.exceptions import AuthenticationError, ErrorCode
from src.config import get_settings

from .identity import USER_ROLE, Identity

logger = logging.getLogger(__name__)

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)

DEV_USER_ID = "dev_user"

KeyRecord = Dict[str, Optional[str]]


class APIKeyStore:
    """JSON file of ``user_id -> {key_hash, role, username}``; one key per user."""

    def __init__(self, storage_path: Optional[str] = None):
        self.storage_path = Path(storage_path or get_settings().security.api_key_storage_path)
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self._records: Dict[str, KeyRecord] = self._read()

    @staticmethod
    def _hash_key(api_key: str) -> str:
        return hashlib.sha256(api_key.encode()).hexdigest()

    def _read(self) -> Dict[str, KeyRecord]:
        if not self.storage_path.exists():
            return {}
        try:
            records = json.loads(self.storage_path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Unreadable API key file {self.storage_path}: {type(e).__name__}")
            return {}
        logger.info(f"Loaded {len(records)} API keys")
        return records

    def _write(self) -> None:
        self.storage_path.write_text(json.dumps(self._records, indent=2))

    def create_key(
        self,
        user_id: str,
        role: str = USER_ROLE,
        username: Optional[str] = None,
    ) -> str:
        """Issue a key for ``user_id``, replacing any previous one, and return it."""
        plain_key = secrets.token_urlsafe(32)
        self._records[user_id] = {
            "key_hash": self._hash_key(plain_key),
            "role": role,
            "username": username,
        }
        self._write()
        logger.info(f"Issued API key for {user_id} (role={role})")
        return plain_key

    def verify_key(self, api_key: str) -> Optional[Identity]:
        """The identity behind ``api_key``, or None. Hashes compare in constant time."""
        hashed = self._hash_key(api_key)
        for user_id, record in self._records.items():
            if secrets.compare_digest(record.get("key_hash") or "", hashed):
                return Identity(
                    id=user_id,
                    role=record.get("role") or USER_ROLE,
                    username=record.get("username"),
                )
        return None

    def revoke_key(self, user_id: str) -> bool:
        if self._records.pop(user_id, None) is None:
            return False
        self._write()
        logger.info(f"Revoked API key for {user_id}")
        return True

    def user_has_key(self, user_id: str) -> bool:
        return user_id in self._records


@lru_cache()
def get_api_key_store() -> APIKeyStore:
    return APIKeyStore()


async def get_current_identity(
    request: Request,
    api_key: Optional[str] = Depends(API_KEY_HEADER),
) -> Identity:
    """
    Resolve the caller from ``X-API-Key``.

    A valid key always wins. Without one, dev mode falls back to the
    development identity and anything else is a 401.
    """
    security = get_settings().security

    identity = get_api_key_store().verify_key(api_key) if api_key else None
    if identity is None:
        if security.dev_mode:
            identity = Identity(id=DEV_USER_ID, role=security.dev_user_role)
        elif api_key:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Invalid API key from {client}")
            raise AuthenticationError(message="Invalid API key", error_code=ErrorCode.INVALID_API_KEY)
        else:
            raise AuthenticationError(message="API key is required")

    request.state.user_id = identity.id
    return identity
