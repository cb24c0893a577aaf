"""
Garage core library to manage garages and the cars parked in them

Garages have no owner, so anybody may create, read and update them.
Putting a car into a garage or taking it out is restricted to the owner
of the car. The reference of the car to its garage is the single source
of the garage's list of cars, so both sides always change together in
one database transaction.
"""

import datetime
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm.session import Session

from .cars import make_page_link
from .logger import enforce_logger
from .outcome import Outcome
from .. import schemas
from ..persistence import models
from ..persistence.store import EntityStore, PAGE_SIZE


MUTABLE_FIELDS = ("name", "city", "state")


def create_garage(
        name: str,
        city: str,
        state: str,
        session: Session,
        base_url: str,
        logger: Optional[logging.Logger] = None
) -> schemas.Garage:
    logger = enforce_logger(logger)
    store = EntityStore(models.Garage, session)
    garage_id = store.create(name=name, city=city, state=state)
    logger.info(f"Created garage {garage_id} named {name!r}")
    return store.get_by_id(garage_id).to_schema(base_url)


def list_garages(
        cursor: Optional[str],
        session: Session,
        base_url: str,
        page_size: int = PAGE_SIZE
) -> schemas.GaragePage:
    """
    Return one page of all known garages

    :raises InvalidCursor: when the cursor wasn't issued for listing garages
    """

    garages, next_cursor = EntityStore(models.Garage, session).list_filtered(page_size, cursor)
    return schemas.GaragePage(
        results=len(garages),
        garages=[garage.to_schema(base_url) for garage in garages],
        next=make_page_link(base_url, "garages", next_cursor)
    )


def get_garage(garage_id: int, session: Session, base_url: str) -> Optional[schemas.Garage]:
    garage = EntityStore(models.Garage, session).get_by_id(garage_id)
    if garage is None:
        return None
    return garage.to_schema(base_url)


def update_garage(
        garage_id: int,
        changes: Dict[str, Any],
        session: Session,
        base_url: str,
        logger: Optional[logging.Logger] = None
) -> Optional[schemas.Garage]:
    """
    Update the mutable fields of a garage

    :raises ValueError: when a field that can't be changed was given
    """

    logger = enforce_logger(logger)
    unknown = set(changes) - set(MUTABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields {sorted(unknown)} of a garage can't be changed")

    store = EntityStore(models.Garage, session)
    garage = store.get_by_id(garage_id)
    if garage is None:
        return None
    for key in MUTABLE_FIELDS:
        if changes.get(key) is not None:
            setattr(garage, key, changes[key])
    store.update(garage)
    logger.debug(f"Updated garage {garage.id}")
    return garage.to_schema(base_url)


def delete_garage(garage_id: int, session: Session, logger: Optional[logging.Logger] = None) -> Outcome:
    """
    Delete a garage, which is only possible while no car is parked in it
    """

    logger = enforce_logger(logger)
    store = EntityStore(models.Garage, session)
    garage = store.get_by_id(garage_id)
    if garage is None:
        return Outcome.NOT_FOUND
    if garage.cars:
        logger.debug(f"Refusing to delete garage {garage.id} holding {len(garage.cars)} car(s)")
        return Outcome.CONFLICT
    store.delete(garage)
    logger.info(f"Deleted garage {garage_id}")
    return Outcome.OK


def assign_car_to_garage(
        owner: str,
        car_id: int,
        garage_id: int,
        session: Session,
        logger: Optional[logging.Logger] = None
) -> Outcome:
    """
    Put a car into a garage

    The checks happen in a fixed order: both the car and the garage must
    exist, then the car must belong to the owner and finally the car must
    not be in any garage yet (regardless of the targeted garage).

    :param owner: subject of the authenticated user
    :param car_id: ID of the car that should be put into the garage
    :param garage_id: ID of the targeted garage
    :param session: SQLAlchemy session used to perform database operations
    :param logger: logger that should be used for INFO and DEBUG messages
    :return: OK, NOT_FOUND (either ID unknown), FORBIDDEN (not the owner)
        or CONFLICT (car already in a garage)
    """

    logger = enforce_logger(logger)
    cars = EntityStore(models.Car, session)
    car = cars.get_by_id(car_id)
    garage = EntityStore(models.Garage, session).get_by_id(garage_id)

    if car is None or garage is None:
        return Outcome.NOT_FOUND
    if car.owner_id != owner:
        return Outcome.FORBIDDEN
    if car.garage_id is not None:
        logger.debug(f"Car {car.id} is already in garage {car.garage_id}")
        return Outcome.CONFLICT

    if not cars.update_where(
        car_id,
        {"owner_id": owner, "garage_id": None},
        garage_id=garage.id,
        garaged=datetime.datetime.now()
    ):
        logger.debug(f"Car {car_id} was put into another garage concurrently")
        return Outcome.CONFLICT
    logger.info(f"Car {car_id} of {owner!r} was put into garage {garage_id}")
    return Outcome.OK


def remove_car_from_garage(
        owner: str,
        car_id: int,
        garage_id: int,
        session: Session,
        logger: Optional[logging.Logger] = None
) -> Outcome:
    """
    Take a car out of the garage it's currently parked in

    The checks happen in the same order as for assignments. A car that is
    not in the given garage (including cars in another garage) is a CONFLICT.
    """

    logger = enforce_logger(logger)
    cars = EntityStore(models.Car, session)
    car = cars.get_by_id(car_id)
    garage = EntityStore(models.Garage, session).get_by_id(garage_id)

    if car is None or garage is None:
        return Outcome.NOT_FOUND
    if car.owner_id != owner:
        return Outcome.FORBIDDEN
    if car.garage_id != garage.id:
        logger.debug(f"Car {car.id} is not in garage {garage.id} (but in {car.garage_id})")
        return Outcome.CONFLICT

    if not cars.update_where(
        car_id,
        {"owner_id": owner, "garage_id": garage.id},
        garage_id=None,
        garaged=None
    ):
        logger.debug(f"Car {car_id} was taken out of garage {garage_id} concurrently")
        return Outcome.CONFLICT
    logger.info(f"Car {car_id} of {owner!r} was taken out of garage {garage_id}")
    return Outcome.OK
