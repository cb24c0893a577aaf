"""
Garage core router module for putting cars into garages and taking them out again
"""

import logging

from fastapi import Depends, Response

from ._router import router
from ..dependency import LocalRequestData
from .. import helpers
from ...misc import garages


logger = logging.getLogger(__name__)

PAIR_NOT_FOUND = "Either no car with this car_id or garage with this garage_id exists"
NOT_THE_OWNER = "This car does not belong to the authenticated user"


@router.put("/cars/{car_id}/garages/{garage_id}", tags=["Parking"], status_code=204, response_class=Response)
async def put_car_into_garage(car_id: int, garage_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Put a car of the authenticated user into a garage

    A car can only be in one garage at a time. It has to be taken out
    of its current garage before putting it into another garage.

    * `400`: if the car is already in a garage (this or any other)
    * `403`: if the car belongs to another user
    * `404`: if the car or the garage doesn't exist
    """

    outcome = garages.assign_car_to_garage(local.subject, car_id, garage_id, local.session, logger)
    helpers.raise_for_outcome(
        outcome,
        PAIR_NOT_FOUND,
        conflict="This car is already in a garage",
        forbidden=NOT_THE_OWNER
    )
    return Response(status_code=204)


@router.delete("/cars/{car_id}/garages/{garage_id}", tags=["Parking"], status_code=204, response_class=Response)
async def take_car_out_of_garage(car_id: int, garage_id: int, local: LocalRequestData = Depends(LocalRequestData)):
    """
    Take a car of the authenticated user out of the garage

    * `400`: if the car is not in this garage
    * `403`: if the car belongs to another user
    * `404`: if the car or the garage doesn't exist
    """

    outcome = garages.remove_car_from_garage(local.subject, car_id, garage_id, local.session, logger)
    helpers.raise_for_outcome(
        outcome,
        PAIR_NOT_FOUND,
        conflict="This car is not in this garage",
        forbidden=NOT_THE_OWNER
    )
    return Response(status_code=204)
