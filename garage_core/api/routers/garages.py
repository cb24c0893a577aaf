"""
Garage core router module for /garages requests

Garages don't belong to anybody, so these path operations don't require authentication.
"""

import logging
from typing import Optional

from fastapi import Depends, Request, Response

from ._router import router
from ..base import BadRequest, MethodNotAllowed, NotFound
from ..dependency import MinimalRequestData, require_json_accept
from .. import helpers
from ...misc import garages
from ...persistence.store import InvalidCursor
from ... import schemas


logger = logging.getLogger(__name__)

GARAGE_NOT_FOUND = "No garage with this garage_id exists"
GARAGE_CREATION_FIELDS = "Garages can only have attributes name, city, and state; all required"
GARAGE_PATCH_FIELDS = "Only name, city, and/or state can be updated for a garage"


async def _get_page(cursor: Optional[str], local: MinimalRequestData) -> schemas.GaragePage:
    try:
        return garages.list_garages(cursor, local.session, local.base_url, local.page_size)
    except InvalidCursor as exc:
        raise BadRequest("Invalid page cursor", detail=str(exc)) from exc


@router.post(
    "/garages",
    tags=["Garages"],
    status_code=201,
    response_model=schemas.Garage,
    dependencies=[Depends(require_json_accept)]
)
async def create_new_garage(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Create a new empty garage from the non-empty strings `name`, `city` and `state`

    * `400`: if the body is not a JSON object, misses a field or contains other fields
    """

    body = await helpers.parse_body(local.request, schemas.GarageCreation, GARAGE_CREATION_FIELDS)
    return garages.create_garage(body.name, body.city, body.state, local.session, local.base_url, logger)


@router.get(
    "/garages",
    tags=["Garages"],
    response_model=schemas.GaragePage,
    dependencies=[Depends(require_json_accept)]
)
async def get_first_garage_page(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return the first page of all garages
    """

    return await _get_page(None, local)


@router.delete("/garages", tags=["Garages"], responses={405: {"model": schemas.APIError}})
async def delete_all_garages(request: Request):
    raise MethodNotAllowed(request, "GET, POST")


@router.get(
    "/garages/page",
    tags=["Garages"],
    response_model=schemas.GaragePage,
    dependencies=[Depends(require_json_accept)]
)
async def get_garage_page_without_cursor(local: MinimalRequestData = Depends(MinimalRequestData)):
    return await _get_page(None, local)


@router.get(
    "/garages/page/{cursor}",
    tags=["Garages"],
    response_model=schemas.GaragePage,
    dependencies=[Depends(require_json_accept)]
)
async def get_garage_page(cursor: str, local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return the page of garages following the cursor of a previous page

    * `400`: if the cursor was not issued for a page of garages
    """

    return await _get_page(cursor, local)


@router.get(
    "/garages/{garage_id}",
    tags=["Garages"],
    response_model=schemas.Garage,
    dependencies=[Depends(require_json_accept)]
)
async def get_garage_by_id(garage_id: int, local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return the garage identified by the ID together with the cars parked in it

    * `404`: if the garage doesn't exist
    """

    garage = garages.get_garage(garage_id, local.session, local.base_url)
    if garage is None:
        raise NotFound(GARAGE_NOT_FOUND, detail=str(garage_id))
    return garage


@router.patch(
    "/garages/{garage_id}",
    tags=["Garages"],
    response_model=schemas.Garage,
    dependencies=[Depends(require_json_accept)]
)
async def update_existing_garage(garage_id: int, local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Update some of the fields `name`, `city` and `state` of a garage

    * `400`: if the body contains any other field
    * `404`: if the garage doesn't exist
    """

    body = await helpers.parse_body(local.request, schemas.GaragePatch, GARAGE_PATCH_FIELDS)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    garage = garages.update_garage(garage_id, changes, local.session, local.base_url, logger)
    if garage is None:
        raise NotFound(GARAGE_NOT_FOUND, detail=str(garage_id))
    return garage


@router.delete("/garages/{garage_id}", tags=["Garages"], status_code=204, response_class=Response)
async def delete_existing_garage(garage_id: int, local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Delete an empty garage

    * `400`: if there are still cars in the garage
    * `404`: if the garage doesn't exist
    """

    outcome = garages.delete_garage(garage_id, local.session, logger)
    helpers.raise_for_outcome(outcome, GARAGE_NOT_FOUND, conflict="Cannot delete a garage that contains cars")
    return Response(status_code=204)
