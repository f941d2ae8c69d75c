"""
Pydantic request models for content endpoints.

Both models accept undeclared keys and pass them through untouched; only the
declared keys are type-checked.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .content import PROTECTED_FIELDS

logger = logging.getLogger(__name__)

# Fields copied from a create payload onto the new record.
CREATE_FIELDS = (
    "title",
    "body",
    "taggedContest",
    "taggedContestID",
    "videoURL",
    "team",
    "status",
    "github",
)


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


class ContentCreateRequest(BaseModel):
    """Request model for submitting a new content entry."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    tagged_contest: Optional[str] = Field(default=None, alias="taggedContest")
    tagged_contest_id: Optional[str] = Field(default=None, alias="taggedContestID")
    video_url: Optional[str] = Field(default=None, alias="videoURL")
    team: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    github: Optional[str] = None
    stars: Optional[int] = None
    starred_by: Optional[List[str]] = Field(default=None, alias="starredBy")

    def to_fields(self) -> Dict[str, Any]:
        """
        Fields used to construct the record.

        Stars, starredBy and any undeclared key are dropped here; the
        repository assigns the server-side values.
        """
        dumped = self.model_dump(by_alias=True)
        return {name: dumped.get(name) for name in CREATE_FIELDS}


class ContentUpdateRequest(BaseModel):
    """Request model for a partial content update. Every field is optional."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1)
    body: Optional[str] = Field(default=None, min_length=1)
    tagged_contest: Optional[str] = Field(default=None, alias="taggedContest")
    tagged_contest_id: Optional[str] = Field(default=None, alias="taggedContestID")
    video_url: Optional[str] = Field(default=None, alias="videoURL")
    team: Optional[str] = Field(default=None, min_length=1)
    status: Optional[str] = Field(default=None, min_length=1)
    github: Optional[str] = None
    stars: Optional[int] = None
    starred_by: Optional[List[str]] = Field(default=None, alias="starredBy")
    prized_place: Optional[str] = Field(default=None, alias="prizedPlace")

    @field_validator("title", "body", "team", "status", "stars", "starred_by")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Required record fields may be omitted but never cleared."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("starred_by")
    @classmethod
    def unique_starred_by(cls, v: List[str]) -> List[str]:
        """Each identity stars a content at most once."""
        return _dedupe(v)

    def to_changes(self) -> Dict[str, Any]:
        """
        Only the supplied keys, in wire form.

        Declared fields sent under either their wire name or their attribute
        name come out under the wire name. Undeclared keys pass through unless
        they would overwrite a server-assigned field.
        """
        fields = type(self).model_fields
        changes: Dict[str, Any] = self.model_dump(
            by_alias=True,
            include=self.model_fields_set & set(fields),
        )

        attribute_names = set(fields)
        for key, value in (self.model_extra or {}).items():
            if key in attribute_names or key in changes:
                continue
            if key in PROTECTED_FIELDS:
                logger.warning(f"Ignoring protected field in update payload: {key}")
                continue
            changes[key] = value

        return changes
