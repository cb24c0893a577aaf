"""
Garage core schemas for the base system

This module contains schemas for users, their cars and the garages
the cars can be parked in, together with the paginated result lists.
"""

from typing import List, Optional

import pydantic


__all__ = [
    "NO_MORE_RESULTS",
    "User", "UserList",
    "Owner", "Reference",
    "Car", "CarCreation", "CarPatch", "CarPage",
    "Garage", "GarageCreation", "GaragePatch", "GaragePage"
]

NO_MORE_RESULTS: str = "No more results"

_text = pydantic.constr(min_length=1, max_length=255)


class _StrictBody(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid", strict=True)


class User(pydantic.BaseModel):
    user_id: str


class UserList(pydantic.BaseModel):
    users: List[User]


class Owner(pydantic.BaseModel):
    user_id: str


class Reference(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    self: str


class Car(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    make: str
    model: str
    color: str
    owner: Owner
    garage: Optional[Reference] = None
    self: str


class CarCreation(_StrictBody):
    make: _text
    model: _text
    color: _text


class CarPatch(_StrictBody):
    make: Optional[_text] = None
    model: Optional[_text] = None
    color: Optional[_text] = None


class CarPage(pydantic.BaseModel):
    results: pydantic.NonNegativeInt
    cars: List[Car]
    next: str


class Garage(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    name: str
    city: str
    state: str
    cars: List[Reference]
    self: str


class GarageCreation(_StrictBody):
    name: _text
    city: _text
    state: _text


class GaragePatch(_StrictBody):
    name: Optional[_text] = None
    city: Optional[_text] = None
    state: Optional[_text] = None


class GaragePage(pydantic.BaseModel):
    results: pydantic.NonNegativeInt
    garages: List[Garage]
    next: str
