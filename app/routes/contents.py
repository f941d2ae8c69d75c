"""
Content API endpoints.

Provides endpoints for:
- Submitting content
- Paginated and full listings with preview bodies
- Featured selections for the landing page
- Reading, updating and deleting a single content record

Authorization:
- Reads are public
- Create, update and delete require an identity (API key, or the dev user in
  dev mode)
- Update and delete require the caller to own the content or be an admin
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from app.auth import Identity, get_current_identity
from app.dependencies.content import (
    ContentContext,
    check_own_content,
    get_content_repository,
    load_content,
)
from app.exceptions import InvalidPageError
from app.models.content import Content, FeaturedContents
from app.models.requests import ContentCreateRequest, ContentUpdateRequest
from app.storage.repository import ContentRepository, build_filter
from app.utils.layout import select_featured, select_featured_count
from app.utils.sanitization import sanitize_for_log, summarize
from app.validation import validate_payload
from src.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contents", tags=["contents"])

LAST_PAGE_HEADER = "Last-Page"


def parse_page(page: Optional[str]) -> int:
    """
    Parse the ``page`` query parameter.

    Missing or blank means the first page.

    Raises:
        InvalidPageError: Not an integer, or below 1.
    """
    if page is None or not page.strip():
        return 1
    try:
        value = int(page)
    except ValueError:
        raise InvalidPageError(page) from None
    if value < 1:
        raise InvalidPageError(page)
    return value


def to_previews(contents: List[Content]) -> List[Content]:
    """Replace every body with its plain-text preview."""
    length = get_settings().content.content_preview_length
    return [c.with_body(summarize(c.body, max_length=length)) for c in contents]


@router.post(
    "",
    response_model=Content,
    status_code=status.HTTP_201_CREATED,
    summary="Submit content",
)
async def write_content(
    payload: Any = Body(None),
    identity: Identity = Depends(get_current_identity),
    repository: ContentRepository = Depends(get_content_repository),
) -> Content:
    """
    Create a content record owned by the caller.

    Stars start at 0 and ``starredBy`` empty; any owner or id supplied in the
    payload is ignored.
    """
    request = validate_payload(ContentCreateRequest, payload)
    content = await repository.create(request.to_fields(), owner=identity)
    logger.info(f"Content submitted: {sanitize_for_log(content.title)} ({content.id})")
    return content


@router.get(
    "",
    response_model=List[Content],
    summary="List content",
    description="One page of content, newest first. The total page count is in the Last-Page header.",
)
async def list_contents(
    response: Response,
    page: Optional[str] = Query(default=None, description="Page number, starting at 1"),
    tagged_contest_id: Optional[str] = Query(
        default=None, alias="taggedContestID", description="Only content tagged with this contest"
    ),
    repository: ContentRepository = Depends(get_content_repository),
) -> List[Content]:
    page_number = parse_page(page)
    result = await repository.list(build_filter(tagged_contest_id), page=page_number)
    response.headers[LAST_PAGE_HEADER] = str(result.total_pages)
    return to_previews(result.items)


@router.get(
    "/full",
    response_model=List[Content],
    summary="List all content",
)
async def full_list_contents(
    tagged_contest_id: Optional[str] = Query(default=None, alias="taggedContestID"),
    repository: ContentRepository = Depends(get_content_repository),
) -> List[Content]:
    """Every matching record, newest first, with preview bodies."""
    contents = await repository.list_all(build_filter(tagged_contest_id))
    return to_previews(contents)


@router.get(
    "/featured",
    response_model=FeaturedContents,
    response_model_by_alias=True,
    summary="Featured content",
)
async def featured_contents(
    viewport_width: Optional[int] = Query(default=None, alias="viewportWidth", ge=0),
    tagged_contest_id: Optional[str] = Query(default=None, alias="taggedContestID"),
    repository: ContentRepository = Depends(get_content_repository),
) -> FeaturedContents:
    """
    Most-starred and prize-winning content, sized for the client's viewport.

    Ties on stars keep the newest first.
    """
    contents = await repository.list_all(build_filter(tagged_contest_id))
    by_stars = sorted(contents, key=lambda c: c.stars, reverse=True)
    by_prize = [c for c in contents if c.prized_place]

    return FeaturedContents(
        count=select_featured_count(viewport_width),
        by_stars=to_previews(select_featured(by_stars, viewport_width)),
        by_prize=to_previews(select_featured(by_prize, viewport_width)),
    )


@router.get(
    "/{content_id}",
    response_model=Content,
    summary="Read content",
)
async def read_content(content: Content = Depends(load_content)) -> Content:
    """The full record with its raw body."""
    return content


@router.patch(
    "/{content_id}",
    response_model=Content,
    summary="Update content",
)
async def update_content(
    payload: Any = Body(None),
    context: ContentContext = Depends(check_own_content),
    repository: ContentRepository = Depends(get_content_repository),
) -> Content:
    """
    Apply a partial update. Only the supplied fields change.

    **Authorization:** owner or admin.
    """
    request = validate_payload(ContentUpdateRequest, payload)
    return await repository.update(context.content.id, request.to_changes())


@router.delete(
    "/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete content",
)
async def remove_content(
    context: ContentContext = Depends(check_own_content),
    repository: ContentRepository = Depends(get_content_repository),
) -> Response:
    """
    Permanently delete a content record.

    **Authorization:** owner or admin.
    """
    await repository.remove(context.content.id)
    logger.info(f"Content {context.content.id} deleted by {context.identity.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
