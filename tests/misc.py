"""
Garage core unit tests for the operations on cars and garages
"""

import sqlalchemy.orm

from garage_core import schemas
from garage_core.misc import cars, garages
from garage_core.misc.outcome import Outcome
from garage_core.persistence import models
from garage_core.persistence.store import EntityStore, InvalidCursor

from . import utils


BASE_URL = "https://garage.example.org"
ALICE = "alice-subject"
BOB = "bob-subject"


class _DomainTests(utils.BasePersistenceTests):
    def make_car(self, owner: str = ALICE, make: str = "Ford") -> schemas.Car:
        return cars.create_car(make, "Focus", "grey", owner, self.session, BASE_URL)

    def make_garage(self, name: str = "Central") -> schemas.Garage:
        return garages.create_garage(name, "Berlin", "BE", self.session, BASE_URL)


class CarOperationTests(_DomainTests):
    def test_create_car(self):
        car = self.make_car()
        self.assertEqual(ALICE, car.owner.user_id)
        self.assertIsNone(car.garage)
        self.assertEqual(f"{BASE_URL}/cars/{car.id}", car.self)
        self.assertEqual(car, cars.get_car(ALICE, car.id, self.session, BASE_URL))

    def test_cars_are_private(self):
        car = self.make_car(ALICE)
        self.make_car(BOB)
        self.assertIsNone(cars.get_car(BOB, car.id, self.session, BASE_URL))
        self.assertIsNone(cars.update_car(BOB, car.id, {"color": "red"}, self.session, BASE_URL))
        self.assertEqual(Outcome.NOT_FOUND, cars.delete_car(BOB, car.id, self.session))

        page = cars.list_cars(BOB, None, self.session, BASE_URL)
        self.assertEqual(1, page.results)
        self.assertTrue(all(c.owner.user_id == BOB for c in page.cars))
        self.assertEqual("grey", cars.get_car(ALICE, car.id, self.session, BASE_URL).color)

    def test_list_cars_pages(self):
        created = [self.make_car(make=f"Make {i}") for i in range(6)]

        first = cars.list_cars(ALICE, None, self.session, BASE_URL)
        self.assertEqual(5, first.results)
        self.assertEqual(created[:5], first.cars)
        self.assertTrue(first.next.startswith(f"{BASE_URL}/cars/page/"))

        cursor = first.next.split("/")[-1]
        second = cars.list_cars(ALICE, cursor, self.session, BASE_URL)
        self.assertEqual(1, second.results)
        self.assertEqual(created[5:], second.cars)
        self.assertEqual(schemas.NO_MORE_RESULTS, second.next)

        small = cars.list_cars(ALICE, None, self.session, BASE_URL, page_size=2)
        self.assertEqual(2, small.results)

    def test_list_cars_foreign_cursor(self):
        for _ in range(3):
            self.make_garage()
        page = garages.list_garages(None, self.session, BASE_URL, page_size=1)
        with self.assertRaises(InvalidCursor):
            cars.list_cars(ALICE, page.next.split("/")[-1], self.session, BASE_URL)

    def test_update_car(self):
        car = self.make_car()
        updated = cars.update_car(ALICE, car.id, {"color": "red"}, self.session, BASE_URL)
        self.assertEqual("red", updated.color)
        self.assertEqual(car.make, updated.make)
        self.assertEqual(car.model, updated.model)

        unchanged = cars.update_car(ALICE, car.id, {"make": None}, self.session, BASE_URL)
        self.assertEqual(updated, unchanged)
        self.assertEqual(updated, cars.update_car(ALICE, car.id, {}, self.session, BASE_URL))
        self.assertIsNone(cars.update_car(ALICE, car.id + 1, {"color": "red"}, self.session, BASE_URL))

    def test_update_car_unknown_fields(self):
        car = self.make_car()
        for changes in [{"owner": BOB}, {"garage": None}, {"id": 42, "color": "red"}]:
            with self.subTest(changes=changes):
                with self.assertRaises(ValueError):
                    cars.update_car(ALICE, car.id, changes, self.session, BASE_URL)
        self.assertEqual(car, cars.get_car(ALICE, car.id, self.session, BASE_URL))

    def test_delete_car(self):
        car = self.make_car()
        self.assertEqual(Outcome.OK, cars.delete_car(ALICE, car.id, self.session))
        self.assertIsNone(cars.get_car(ALICE, car.id, self.session, BASE_URL))
        self.assertEqual(Outcome.NOT_FOUND, cars.delete_car(ALICE, car.id, self.session))


class GarageOperationTests(_DomainTests):
    def test_create_and_update_garage(self):
        garage = self.make_garage()
        self.assertEqual([], garage.cars)
        self.assertEqual(f"{BASE_URL}/garages/{garage.id}", garage.self)

        updated = garages.update_garage(garage.id, {"city": "Potsdam", "state": "BB"}, self.session, BASE_URL)
        self.assertEqual(("Central", "Potsdam", "BB"), (updated.name, updated.city, updated.state))
        self.assertEqual(updated, garages.get_garage(garage.id, self.session, BASE_URL))
        self.assertIsNone(garages.update_garage(garage.id + 1, {}, self.session, BASE_URL))
        with self.assertRaises(ValueError):
            garages.update_garage(garage.id, {"cars": []}, self.session, BASE_URL)

    def test_list_garages(self):
        created = [self.make_garage(f"Garage {i}") for i in range(7)]
        first = garages.list_garages(None, self.session, BASE_URL)
        self.assertEqual(created[:5], first.garages)
        second = garages.list_garages(first.next.split("/")[-1], self.session, BASE_URL)
        self.assertEqual(created[5:], second.garages)
        self.assertEqual(schemas.NO_MORE_RESULTS, second.next)

    def test_delete_garage(self):
        garage = self.make_garage()
        car = self.make_car()
        garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session)

        self.assertEqual(Outcome.CONFLICT, garages.delete_garage(garage.id, self.session))
        self.assertIsNotNone(garages.get_garage(garage.id, self.session, BASE_URL))

        garages.remove_car_from_garage(ALICE, car.id, garage.id, self.session)
        self.assertEqual(Outcome.OK, garages.delete_garage(garage.id, self.session))
        self.assertEqual(Outcome.NOT_FOUND, garages.delete_garage(garage.id, self.session))


class ParkingTests(_DomainTests):
    def test_assign_and_remove(self):
        garage = self.make_garage()
        car = self.make_car()

        self.assertEqual(Outcome.OK, garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session))
        parked = cars.get_car(ALICE, car.id, self.session, BASE_URL)
        self.assertEqual(garage.id, parked.garage.id)
        self.assertEqual(f"{BASE_URL}/garages/{garage.id}", parked.garage.self)
        self.assertEqual(
            [schemas.Reference(id=car.id, self=car.self)],
            garages.get_garage(garage.id, self.session, BASE_URL).cars
        )
        self.assertEqual(Outcome.CONFLICT, cars.delete_car(ALICE, car.id, self.session))

        self.assertEqual(Outcome.OK, garages.remove_car_from_garage(ALICE, car.id, garage.id, self.session))
        self.assertIsNone(cars.get_car(ALICE, car.id, self.session, BASE_URL).garage)
        self.assertEqual([], garages.get_garage(garage.id, self.session, BASE_URL).cars)
        self.assertEqual(Outcome.OK, cars.delete_car(ALICE, car.id, self.session))

    def test_garage_keeps_parking_order(self):
        garage = self.make_garage()
        first, second, third = self.make_car(), self.make_car(), self.make_car()
        for car in (third, first, second):
            self.assertEqual(Outcome.OK, garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session))
        listed = garages.get_garage(garage.id, self.session, BASE_URL).cars
        self.assertEqual([third.id, first.id, second.id], [c.id for c in listed])

    def test_assign_conflicts(self):
        garage, other = self.make_garage(), self.make_garage("Other")
        car = self.make_car()
        garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session)

        self.assertEqual(Outcome.CONFLICT, garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session))
        self.assertEqual(Outcome.CONFLICT, garages.assign_car_to_garage(ALICE, car.id, other.id, self.session))
        self.assertEqual([], garages.get_garage(other.id, self.session, BASE_URL).cars)

    def test_concurrent_parking(self):
        garage, other = self.make_garage(), self.make_garage("Other")
        car = self.make_car()
        store = EntityStore(models.Car, self.session)
        self.assertIsNone(store.get_by_id(car.id).garage_id)

        # another request parks the car after this session has already loaded it
        concurrent = sqlalchemy.orm.Session(bind=self.engine)
        try:
            self.assertEqual(Outcome.OK, garages.assign_car_to_garage(ALICE, car.id, garage.id, concurrent))
        finally:
            concurrent.close()

        self.assertIsNone(store.get_by_id(car.id).garage_id)
        self.assertEqual(Outcome.CONFLICT, garages.assign_car_to_garage(ALICE, car.id, other.id, self.session))
        self.assertEqual(garage.id, cars.get_car(ALICE, car.id, self.session, BASE_URL).garage.id)
        self.assertEqual([], garages.get_garage(other.id, self.session, BASE_URL).cars)

    def test_concurrent_removal(self):
        garage = self.make_garage()
        car = self.make_car()
        garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session)
        store = EntityStore(models.Car, self.session)
        self.assertEqual(garage.id, store.get_by_id(car.id).garage_id)

        concurrent = sqlalchemy.orm.Session(bind=self.engine)
        try:
            self.assertEqual(Outcome.OK, garages.remove_car_from_garage(ALICE, car.id, garage.id, concurrent))
        finally:
            concurrent.close()

        self.assertEqual(garage.id, store.get_by_id(car.id).garage_id)
        self.assertEqual(Outcome.CONFLICT, garages.remove_car_from_garage(ALICE, car.id, garage.id, self.session))
        self.assertIsNone(cars.get_car(ALICE, car.id, self.session, BASE_URL).garage)

    def test_remove_from_other_garage(self):
        garage, other = self.make_garage(), self.make_garage("Other")
        car = self.make_car()
        self.assertEqual(Outcome.CONFLICT, garages.remove_car_from_garage(ALICE, car.id, garage.id, self.session))

        garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session)
        self.assertEqual(Outcome.CONFLICT, garages.remove_car_from_garage(ALICE, car.id, other.id, self.session))
        self.assertEqual(garage.id, cars.get_car(ALICE, car.id, self.session, BASE_URL).garage.id)

    def test_check_order(self):
        garage = self.make_garage()
        car = self.make_car(ALICE)

        self.assertEqual(Outcome.NOT_FOUND, garages.assign_car_to_garage(BOB, car.id + 1, garage.id, self.session))
        self.assertEqual(Outcome.NOT_FOUND, garages.assign_car_to_garage(BOB, car.id, garage.id + 1, self.session))
        self.assertEqual(Outcome.FORBIDDEN, garages.assign_car_to_garage(BOB, car.id, garage.id, self.session))
        self.assertEqual(Outcome.FORBIDDEN, garages.remove_car_from_garage(BOB, car.id, garage.id, self.session))

        garages.assign_car_to_garage(ALICE, car.id, garage.id, self.session)
        self.assertEqual(Outcome.FORBIDDEN, garages.assign_car_to_garage(BOB, car.id, garage.id, self.session))
        self.assertEqual(Outcome.NOT_FOUND, garages.remove_car_from_garage(ALICE, car.id, garage.id + 1, self.session))
        self.assertEqual(garage.id, cars.get_car(ALICE, car.id, self.session, BASE_URL).garage.id)
