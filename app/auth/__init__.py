"""Authentication components for the Contest Hub content API."""

from .api_key import (
    API_KEY_HEADER,
    DEV_USER_ID,
    APIKeyStore,
    get_api_key_store,
    get_current_identity,
)
from .identity import ADMIN_ROLE, USER_ROLE, Identity

__all__ = [
    "APIKeyStore",
    "get_api_key_store",
    "API_KEY_HEADER",
    "DEV_USER_ID",
    "get_current_identity",
    "Identity",
    "ADMIN_ROLE",
    "USER_ROLE",
]
