"""
Garage core router module for /cars requests

All path operations here require a valid bearer token. Cars are only
visible to their owners, so accessing the car of another user yields
404 Not Found instead of 403 Forbidden.
"""

import logging
from typing import Optional

from fastapi import Depends, Request, Response

from ._router import router
from ..base import BadRequest, MethodNotAllowed, NotFound
from ..dependency import LocalRequestData, require_json_accept
from .. import helpers
from ...misc import cars
from ...persistence.store import InvalidCursor
from ... import schemas


logger = logging.getLogger(__name__)

CAR_NOT_FOUND = "No car with this car_id exists for the authenticated user"
CAR_CREATION_FIELDS = "Cars can only have attributes make, model, and color; all required"
CAR_PATCH_FIELDS = "Only make, model, and/or color can be updated for a car"


async def _get_page(cursor: Optional[str], local: LocalRequestData) -> schemas.CarPage:
    try:
        return cars.list_cars(local.subject, cursor, local.session, local.base_url, local.page_size)
    except InvalidCursor as exc:
        raise BadRequest("Invalid page cursor", detail=str(exc)) from exc


@router.post(
    "/cars",
    tags=["Cars"],
    status_code=201,
    response_model=schemas.Car,
    dependencies=[Depends(require_json_accept)]
)
async def create_new_car(local: LocalRequestData = Depends(LocalRequestData)):
    """
    Create a new car owned by the authenticated user

    The body must contain exactly the non-empty strings `make`, `model` and `color`.
    The owner is always the authenticated user. A new car isn't in any garage.

    * `400`: if the body is not a JSON object or contains other fields
    * `401`: if the bearer token is missing or invalid
    """

    body = await helpers.parse_body(local.request, schemas.CarCreation, CAR_CREATION_FIELDS)
    return cars.create_car(body.make, body.model, body.color, local.subject, local.session, local.base_url, logger)


@router.get(
    "/cars",
    tags=["Cars"],
    response_model=schemas.CarPage,
    dependencies=[Depends(require_json_accept)]
)
async def get_first_car_page(local: LocalRequestData = Depends(LocalRequestData)):
    """
    Return the first page of the cars owned by the authenticated user

    * `401`: if the bearer token is missing or invalid
    """

    return await _get_page(None, local)


@router.delete("/cars", tags=["Cars"], responses={405: {"model": schemas.APIError}})
async def delete_all_cars(request: Request):
    """
    Deleting all cars at once is not supported

    * `405`: always, listing the allowed methods in the `Allow` and `Accept` headers
    """

    raise MethodNotAllowed(request, "GET, POST")


@router.get(
    "/cars/page",
    tags=["Cars"],
    response_model=schemas.CarPage,
    dependencies=[Depends(require_json_accept)]
)
async def get_car_page_without_cursor(local: LocalRequestData = Depends(LocalRequestData)):
    return await _get_page(None, local)


@router.get(
    "/cars/page/{cursor}",
    tags=["Cars"],
    response_model=schemas.CarPage,
    dependencies=[Depends(require_json_accept)]
)
async def get_car_page(cursor: str, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Return the page of cars following the cursor of a previous page

    * `400`: if the cursor was not issued for a page of cars
    * `401`: if the bearer token is missing or invalid
    """

    return await _get_page(cursor, local)


@router.get(
    "/cars/{car_id}",
    tags=["Cars"],
    response_model=schemas.Car,
    dependencies=[Depends(require_json_accept)]
)
async def get_car_by_id(car_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Return the car identified by the ID, if the authenticated user owns it

    * `404`: if the car doesn't exist or belongs to another user
    """

    car = cars.get_car(local.subject, car_id, local.session, local.base_url)
    if car is None:
        raise NotFound(CAR_NOT_FOUND, detail=str(car_id))
    return car


@router.patch(
    "/cars/{car_id}",
    tags=["Cars"],
    response_model=schemas.Car,
    dependencies=[Depends(require_json_accept)]
)
async def update_existing_car(car_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Update some of the fields `make`, `model` and `color` of a car

    Fields missing in the body (or set to `null`) are left unchanged.

    * `400`: if the body contains any other field
    * `404`: if the car doesn't exist or belongs to another user
    """

    body = await helpers.parse_body(local.request, schemas.CarPatch, CAR_PATCH_FIELDS)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    car = cars.update_car(local.subject, car_id, changes, local.session, local.base_url, logger)
    if car is None:
        raise NotFound(CAR_NOT_FOUND, detail=str(car_id))
    return car


@router.delete("/cars/{car_id}", tags=["Cars"], status_code=204, response_class=Response)
async def delete_existing_car(car_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Delete a car of the authenticated user

    * `400`: if the car is still in a garage
    * `404`: if the car doesn't exist or belongs to another user
    """

    outcome = cars.delete_car(local.subject, car_id, local.session, logger)
    helpers.raise_for_outcome(outcome, CAR_NOT_FOUND, conflict="Cannot delete a car that is in a garage")
    return Response(status_code=204)
