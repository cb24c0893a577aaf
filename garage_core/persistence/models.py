"""
Garage core database models
"""

import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, FetchedValue, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .. import schemas


def _url(base_url: str, *segments) -> str:
    return "/".join([base_url.rstrip("/"), *(str(s) for s in segments)])


class User(Base):
    """
    Model representing one end-user, identified by the subject of the identity provider
    """

    __tablename__ = "users"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    user_id: str = Column(String(255), nullable=False, unique=True, index=True)
    """Stable subject identifier issued by the identity provider"""
    name: str = Column(String(255), nullable=False)
    created: datetime.datetime = Column(DateTime, server_default=func.now())

    def to_schema(self) -> schemas.User:
        """
        Pydantic schema representation of the database model that can be sent to clients
        """

        return schemas.User(user_id=self.user_id)

    def __repr__(self) -> str:
        return f"User(id={self.id}, user_id={self.user_id!r}, name={self.name!r})"


class Garage(Base):
    """
    Model representing a garage that holds any number of cars
    """

    __tablename__ = "garages"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    name: str = Column(String(255), nullable=False)
    city: str = Column(String(255), nullable=False)
    state: str = Column(String(255), nullable=False)
    created: datetime.datetime = Column(DateTime, server_default=func.now())
    modified: datetime.datetime = Column(DateTime, server_onupdate=FetchedValue(), server_default=func.now(), onupdate=func.now())

    cars: List["Car"] = relationship(
        "Car",
        back_populates="garage",
        order_by=lambda: [Car.garaged, Car.id]
    )
    """Cars parked in this garage, in the order they were put in"""

    def to_schema(self, base_url: str) -> schemas.Garage:
        """
        Pydantic schema representation of the database model that can be sent to clients

        :param base_url: absolute URL of the API root used to build the hyperlinks
        """

        return schemas.Garage(
            id=int(self.id),
            name=self.name,
            city=self.city,
            state=self.state,
            cars=[schemas.Reference(id=int(car.id), self=_url(base_url, "cars", car.id)) for car in self.cars],
            self=_url(base_url, "garages", self.id)
        )

    def __repr__(self) -> str:
        return f"Garage(id={self.id}, name={self.name!r}, cars={[car.id for car in self.cars]})"


class Car(Base):
    """
    Model representing a car owned by exactly one user, optionally parked in one garage
    """

    __tablename__ = "cars"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    make: str = Column(String(255), nullable=False)
    model: str = Column(String(255), nullable=False)
    color: str = Column(String(255), nullable=False)
    owner_id: str = Column(String(255), nullable=False, index=True)
    """Subject of the owning user, set once on creation"""
    garage_id: Optional[int] = Column(Integer, ForeignKey("garages.id", ondelete="RESTRICT"), nullable=True)
    garaged: Optional[datetime.datetime] = Column(DateTime, nullable=True)
    """Point in time the car was put into its current garage"""
    created: datetime.datetime = Column(DateTime, server_default=func.now())
    modified: datetime.datetime = Column(DateTime, server_onupdate=FetchedValue(), server_default=func.now(), onupdate=func.now())

    garage: Optional[Garage] = relationship("Garage", back_populates="cars")

    def to_schema(self, base_url: str) -> schemas.Car:
        """
        Pydantic schema representation of the database model that can be sent to clients

        :param base_url: absolute URL of the API root used to build the hyperlinks
        """

        garage = None
        if self.garage_id is not None:
            garage = schemas.Reference(id=int(self.garage_id), self=_url(base_url, "garages", self.garage_id))
        return schemas.Car(
            id=int(self.id),
            make=self.make,
            model=self.model,
            color=self.color,
            owner=schemas.Owner(user_id=self.owner_id),
            garage=garage,
            self=_url(base_url, "cars", self.id)
        )

    def __repr__(self) -> str:
        return f"Car(id={self.id}, owner_id={self.owner_id!r}, garage_id={self.garage_id})"
