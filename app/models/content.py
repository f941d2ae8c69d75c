"""
Pydantic models for stored content records and API responses.

Field names are snake_case in Python and camelCase on the wire
(``taggedContestID``, ``starredBy``, ...). Documents handed to a store are
always in wire form.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Keys a client may never set: assigned by the store or at creation.
PROTECTED_FIELDS = frozenset({"id", "_id", "owner", "user", "createdAt"})


class Owner(BaseModel):
    """Reference to the identity that created a content record."""

    id: str
    username: Optional[str] = None


class Content(BaseModel):
    """A submitted contest entry as stored and returned by the API."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    title: str
    body: str
    tagged_contest: Optional[str] = Field(default=None, alias="taggedContest")
    tagged_contest_id: Optional[str] = Field(default=None, alias="taggedContestID")
    team: str
    status: str
    stars: int = 0
    starred_by: List[str] = Field(default_factory=list, alias="starredBy")
    video_url: Optional[str] = Field(default=None, alias="videoURL")
    github: Optional[str] = None
    prized_place: Optional[str] = Field(default=None, alias="prizedPlace")
    owner: Owner
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Content":
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def with_body(self, body: str) -> "Content":
        """Return a copy whose body is replaced; the original is untouched."""
        return self.model_copy(update={"body": body})


class FeaturedContents(BaseModel):
    """Featured selections for the landing page."""

    model_config = ConfigDict(populate_by_name=True)

    count: int = Field(..., description="Items per selection for the given viewport")
    by_stars: List[Content] = Field(default_factory=list, alias="byStars")
    by_prize: List[Content] = Field(default_factory=list, alias="byPrize")
