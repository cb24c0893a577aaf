"""
Generic helper library for the core REST API
"""

import json
import logging
from typing import Optional, Type, TypeVar

import pydantic
from fastapi import Request

from .base import BadRequest, Conflict, Forbidden, NotFound
from ..misc.outcome import Outcome


logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=pydantic.BaseModel)


async def parse_body(request: Request, schema: Type[SchemaType], message: str) -> SchemaType:
    """
    Parse and validate the JSON object in the request body

    The body is parsed manually instead of letting FastAPI validate it,
    because every kind of invalid body should produce the same
    user-friendly message describing the accepted fields.

    :param request: incoming request with a JSON body
    :param schema: pydantic model the body should be validated against
    :param message: error message used for all kinds of validation failures
    :return: the validated body as instance of the schema
    :raises BadRequest: when the body is not a JSON object or fails validation
    """

    try:
        content = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise BadRequest("The request body must be a JSON object", detail=str(exc)) from exc
    if not isinstance(content, dict):
        raise BadRequest("The request body must be a JSON object", detail=type(content).__name__)

    try:
        return schema.model_validate(content)
    except pydantic.ValidationError as exc:
        logger.debug(f"Rejected {schema.__name__} body: {exc.error_count()} validation error(s)")
        raise BadRequest(message, detail=str(exc)) from exc


def raise_for_outcome(
        outcome: Outcome,
        not_found: str,
        conflict: Optional[str] = None,
        forbidden: Optional[str] = None
):
    """
    Raise the API exception matching the outcome of a domain operation (nothing for OK)
    """

    if outcome == Outcome.OK:
        return
    if outcome == Outcome.NOT_FOUND:
        raise NotFound(not_found)
    if outcome == Outcome.FORBIDDEN and forbidden is not None:
        raise Forbidden(forbidden)
    if outcome == Outcome.CONFLICT and conflict is not None:
        raise Conflict(conflict)
    raise ValueError(f"Unexpected outcome {outcome} of the domain operation")
