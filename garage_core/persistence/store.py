"""
Garage core entity store with exact-match filtering and cursor pagination

Cursors handed out by the store are opaque tokens. They encode the kind of
entity they were created for and the ID of the last returned record, so a
request presenting the cursor resumes exactly after that record. Callers
must never parse or build cursors themselves.
"""

import json
import base64
import logging
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

import sqlalchemy.orm

from . import models


PAGE_SIZE: int = 5

ModelType = TypeVar("ModelType", models.User, models.Car, models.Garage)

_logger = logging.getLogger(__name__)


class InvalidCursor(ValueError):
    """
    Exception raised when a presented cursor wasn't issued by the store for this entity kind
    """


def _encode_cursor(kind: str, last_id: int) -> str:
    raw = json.dumps({"k": kind, "a": last_id}, separators=(",", ":")).encode("UTF-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _decode_cursor(kind: str, cursor: str) -> int:
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        content = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except ValueError as exc:
        # also covers integers beyond the interpreter's digit limit
        raise InvalidCursor(f"Cursor {cursor[:64]!r} is malformed") from exc

    if not isinstance(content, dict) or content.get("k") != kind:
        raise InvalidCursor(f"Cursor {cursor[:64]!r} doesn't belong to {kind!r}")
    last_id = content.get("a")
    if not isinstance(last_id, int) or isinstance(last_id, bool) or not 0 <= last_id < 2**63:
        raise InvalidCursor(f"Cursor {cursor[:64]!r} has no valid position")
    return last_id


class EntityStore(Generic[ModelType]):
    """
    Typed access to one entity kind in the database

    :param model: class of a SQLAlchemy model
    :param session: database session which should be used to perform all queries
    """

    def __init__(self, model: Type[ModelType], session: sqlalchemy.orm.Session):
        self.model = model
        self.session = session

    @property
    def kind(self) -> str:
        return self.model.__tablename__

    def create(self, **fields: Any) -> int:
        """
        Create and commit a new record, returning the ID allocated by the database
        """

        obj = self.model(**fields)
        self.session.add(obj)
        self.session.commit()
        _logger.debug(f"Created {obj!r}")
        return int(obj.id)

    def get_by_id(self, object_id: int, **predicate: Any) -> Optional[ModelType]:
        """
        Return the record identified by its ID (if it satisfies all the optional predicates)
        """

        if not 0 <= object_id < 2**63:
            return None
        obj = self.session.get(self.model, object_id)
        if obj is None:
            return None
        if any(getattr(obj, k) != v for k, v in predicate.items()):
            return None
        return obj

    def list_filtered(
            self,
            limit: int = PAGE_SIZE,
            cursor: Optional[str] = None,
            **predicate: Any
    ) -> Tuple[List[ModelType], Optional[str]]:
        """
        Return one page of records that equal all predicates, in insertion order

        :param limit: maximum number of records in the page
        :param cursor: optional cursor of a previous call to resume after its last record
        :param predicate: dict of attribute values the records must be equal to
        :return: tuple of the records and the cursor for the next page (which
            is None when no more records are available after this page)
        :raises InvalidCursor: when the cursor can't be used for this entity kind
        """

        query = self.session.query(self.model).filter_by(**predicate)
        if cursor:
            query = query.filter(self.model.id > _decode_cursor(self.kind, cursor))
        results = query.order_by(self.model.id).limit(limit + 1).all()

        if len(results) > limit:
            results = results[:limit]
            return results, _encode_cursor(self.kind, int(results[-1].id))
        return results, None

    def all(self, **predicate: Any) -> List[ModelType]:
        return self.session.query(self.model).filter_by(**predicate).order_by(self.model.id).all()

    def update(self, obj: ModelType) -> ModelType:
        """
        Commit the modified record (together with anything else pending in the session)
        """

        self.session.add(obj)
        self.session.commit()
        _logger.debug(f"Updated {obj!r}")
        return obj

    def update_where(self, object_id: int, expected: Dict[str, Any], **values: Any) -> bool:
        """
        Atomically change one record, but only while it still holds all the expected values

        The condition is part of the single ``UPDATE`` statement, so a
        concurrent change of the same record between reading and writing
        it lets this update match no row instead of overwriting the other.

        :param object_id: ID of the record that should be changed
        :param expected: dict of attribute values the record must currently have
        :param values: new attribute values of the record
        :return: whether the record was changed
        """

        count = self.session.query(self.model).filter_by(id=object_id, **expected).update(
            values,
            synchronize_session=False
        )
        self.session.commit()
        _logger.debug(f"Conditional update of {self.model.__name__} {object_id} matched {count} row(s)")
        return count == 1

    def delete(self, obj: ModelType):
        _logger.debug(f"Deleting {obj!r}...")
        self.session.delete(obj)
        self.session.commit()
