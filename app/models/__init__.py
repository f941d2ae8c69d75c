"""Pydantic models for the Contest Hub content API."""

from .content import PROTECTED_FIELDS, Content, FeaturedContents, Owner
from .requests import CREATE_FIELDS, ContentCreateRequest, ContentUpdateRequest

__all__ = [
    "Content",
    "FeaturedContents",
    "Owner",
    "PROTECTED_FIELDS",
    "ContentCreateRequest",
    "ContentUpdateRequest",
    "CREATE_FIELDS",
]
