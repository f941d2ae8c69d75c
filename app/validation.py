"""
Payload validation for content writes.

Request bodies are taken as raw JSON and checked here rather than by FastAPI,
so that every failure, including a body that is not an object, produces the
same ``ContentValidationError`` shape.
"""

import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.error_handlers import format_pydantic_errors
from app.exceptions import ContentValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(schema: Type[ModelT], payload: Any) -> ModelT:
    """
    Validate ``payload`` against ``schema``.

    Args:
        schema: Pydantic model describing the operation's accepted shape.
        payload: Decoded JSON request body.

    Returns:
        The validated model instance.

    Raises:
        ContentValidationError: Listing every offending field.
    """
    if not isinstance(payload, dict):
        raise ContentValidationError(
            [{"field": "request", "message": "Request body must be a JSON object"}]
        )

    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        errors = format_pydantic_errors(e.errors())
        logger.debug(f"{schema.__name__} rejected payload: {errors}")
        raise ContentValidationError(errors) from e
