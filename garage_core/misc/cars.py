"""
Garage core library to manage the cars of authenticated users

Any car is only visible to its owner. Requests for cars of other
users are answered as if the car didn't exist at all, so that the
existence of a car doesn't leak across different owners.
"""

import logging
import urllib.parse
from typing import Any, Dict, Optional

from sqlalchemy.orm.session import Session

from .logger import enforce_logger
from .outcome import Outcome
from .. import schemas
from ..persistence import models
from ..persistence.store import EntityStore, PAGE_SIZE


MUTABLE_FIELDS = ("make", "model", "color")


def make_page_link(base_url: str, collection: str, cursor: Optional[str]) -> str:
    """
    Return the absolute URL of the page starting at the cursor (or the terminal marker without cursor)
    """

    if cursor is None:
        return schemas.NO_MORE_RESULTS
    return f"{base_url.rstrip('/')}/{collection}/page/{urllib.parse.quote(cursor, safe='')}"


def create_car(
        make: str,
        model: str,
        color: str,
        owner: str,
        session: Session,
        base_url: str,
        logger: Optional[logging.Logger] = None
) -> schemas.Car:
    """
    Create a new car owned by the given subject; new cars are never in a garage

    :param make: manufacturer of the car
    :param model: model name of the car
    :param color: color of the car
    :param owner: subject of the authenticated user, who becomes the immutable owner
    :param session: SQLAlchemy session used to perform database operations
    :param base_url: absolute URL of the API root used to build the hyperlinks
    :param logger: logger that should be used for INFO and DEBUG messages
    :return: the newly created car
    """

    logger = enforce_logger(logger)
    store = EntityStore(models.Car, session)
    car_id = store.create(make=make, model=model, color=color, owner_id=owner, garage_id=None)
    logger.info(f"Created car {car_id} for owner {owner!r}")
    return store.get_by_id(car_id).to_schema(base_url)


def list_cars(
        owner: str,
        cursor: Optional[str],
        session: Session,
        base_url: str,
        page_size: int = PAGE_SIZE
) -> schemas.CarPage:
    """
    Return one page of the cars of the given owner

    :raises InvalidCursor: when the cursor wasn't issued for listing cars
    """

    cars, next_cursor = EntityStore(models.Car, session).list_filtered(page_size, cursor, owner_id=owner)
    return schemas.CarPage(
        results=len(cars),
        cars=[car.to_schema(base_url) for car in cars],
        next=make_page_link(base_url, "cars", next_cursor)
    )


def get_car(owner: str, car_id: int, session: Session, base_url: str) -> Optional[schemas.Car]:
    car = EntityStore(models.Car, session).get_by_id(car_id, owner_id=owner)
    if car is None:
        return None
    return car.to_schema(base_url)


def update_car(
        owner: str,
        car_id: int,
        changes: Dict[str, Any],
        session: Session,
        base_url: str,
        logger: Optional[logging.Logger] = None
) -> Optional[schemas.Car]:
    """
    Update the mutable fields of a car owned by the given subject

    :param owner: subject of the authenticated user
    :param car_id: ID of the car that should be changed
    :param changes: new values of some mutable fields; missing or empty values keep the old ones
    :param session: SQLAlchemy session used to perform database operations
    :param base_url: absolute URL of the API root used to build the hyperlinks
    :param logger: logger that should be used for INFO and DEBUG messages
    :return: the updated car or None if the owner has no car with this ID
    :raises ValueError: when a field that can't be changed was given
    """

    logger = enforce_logger(logger)
    unknown = set(changes) - set(MUTABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields {sorted(unknown)} of a car can't be changed")

    store = EntityStore(models.Car, session)
    car = store.get_by_id(car_id, owner_id=owner)
    if car is None:
        return None
    for key in MUTABLE_FIELDS:
        if changes.get(key) is not None:
            setattr(car, key, changes[key])
    store.update(car)
    logger.debug(f"Updated car {car.id} of owner {owner!r}")
    return car.to_schema(base_url)


def delete_car(owner: str, car_id: int, session: Session, logger: Optional[logging.Logger] = None) -> Outcome:
    """
    Delete a car of the given owner, which is only possible while it's not in a garage
    """

    logger = enforce_logger(logger)
    store = EntityStore(models.Car, session)
    car = store.get_by_id(car_id, owner_id=owner)
    if car is None:
        return Outcome.NOT_FOUND
    if car.garage_id is not None:
        logger.debug(f"Refusing to delete car {car.id}, it's in garage {car.garage_id}")
        return Outcome.CONFLICT
    store.delete(car)
    logger.info(f"Deleted car {car_id} of owner {owner!r}")
    return Outcome.OK
