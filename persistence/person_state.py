from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Collection, Mapping

from bson import ObjectId
from pydantic import BaseModel, Field, field_validator

PEOPLE_COLLECTION = "people"

ASCENDING = 1
DESCENDING = -1

# BSON stores integers as at most 8 bytes.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

PERSON_FIELDS = ("name", "age", "favoriteFoods")


def _check_age(v: Any) -> Any:
    # bool is an int subclass; Mongoose would not accept it as a Number either.
    if isinstance(v, bool):
        raise ValueError("age must be a number")
    return v


def _check_age_range(v: Any) -> Any:
    if isinstance(v, int) and not INT64_MIN <= v <= INT64_MAX:
        raise ValueError("age must fit in a 64-bit integer")
    return v


class PersonRecord(BaseModel):
    """
    Mirrors a document in the `people` collection:
      { "_id": ObjectId, "name": str, "age": number | absent, "favoriteFoods": [str, ...] }
    """

    id: str | None = None
    name: str = Field(min_length=1)
    age: int | float | None = None
    favoriteFoods: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @field_validator("age", mode="before")
    @classmethod
    def _age_not_bool(cls, v: Any) -> Any:
        return _check_age(v)

    @field_validator("age")
    @classmethod
    def _age_in_range(cls, v: Any) -> Any:
        return _check_age_range(v)

    @classmethod
    def from_store_doc(cls, doc: Mapping[str, Any], hidden: Collection[str] = ()) -> "PersonRecord":
        """
        Build a record from a stored document.

        Fields in `hidden` were projected out and stay unset; a stored document
        that simply lacks `favoriteFoods` reads back as an empty list.
        """
        data = {k: v for k, v in doc.items() if k != "_id"}
        if "_id" in doc:
            data["id"] = str(doc["_id"])
        if "favoriteFoods" not in data and "favoriteFoods" not in hidden:
            data["favoriteFoods"] = []
        return cls.model_validate(data)

    def to_store_doc(self) -> dict[str, Any]:
        """Document body without `_id` (the store assigns it on insert)."""
        doc = self.model_dump(exclude={"id"})
        if doc.get("age") is None:
            doc.pop("age", None)
        return doc

    def to_api_doc(self) -> dict[str, Any]:
        # Projected-out fields stay out of the payload.
        return self.model_dump(mode="json", exclude_unset=True, exclude_none=True)


class AgeUpdate(BaseModel):
    age: int | float

    @field_validator("age", mode="before")
    @classmethod
    def _age_not_bool(cls, v: Any) -> Any:
        return _check_age(v)

    @field_validator("age")
    @classmethod
    def _age_in_range(cls, v: Any) -> Any:
        return _check_age_range(v)


@dataclass(frozen=True)
class PersonQuery:
    """
    A chained query against `people`.

    Always applied as: filter -> sort -> limit -> projection.
    `limit=None` means no limit; `projection=None` returns whole documents.
    """

    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] = field(default_factory=list)
    limit: int | None = None
    projection: dict[str, int] | None = None

    def hidden_fields(self) -> frozenset[str]:
        """
        Record fields the projection leaves out (`id` stands for `_id`).

        Raises ValueError for projections a person record cannot be read from.
        """
        if not self.projection:
            return frozenset()

        hidden: set[str] = set()
        if not self.projection.get("_id", 1):
            hidden.add("id")

        flags = {k: bool(v) for k, v in self.projection.items() if k != "_id"}
        if any(flags.values()):
            if not all(flags.values()):
                raise ValueError("projection cannot mix inclusion and exclusion")
            hidden.update(f for f in PERSON_FIELDS if f not in flags)
        else:
            hidden.update(flags)

        if "name" in hidden:
            raise ValueError("projection must keep `name`")
        return frozenset(hidden)


def object_id_or_none(person_id: Any) -> ObjectId | None:
    if isinstance(person_id, ObjectId):
        return person_id
    # ObjectId.is_valid also takes any 12-char string as raw bytes.
    if isinstance(person_id, str) and len(person_id) == 24 and ObjectId.is_valid(person_id):
        return ObjectId(person_id)
    return None
