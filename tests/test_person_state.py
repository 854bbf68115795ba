from __future__ import annotations

import pydantic
import pytest
from bson import ObjectId

from persistence.person_state import PersonRecord, object_id_or_none


def test_store_doc_roundtrip_maps_id():
    oid = ObjectId()
    rec = PersonRecord.from_store_doc({"_id": oid, "name": "Bob", "age": 22.5, "favoriteFoods": ["fries"]})
    assert rec.id == str(oid)
    assert rec.age == 22.5
    assert rec.to_store_doc() == {"name": "Bob", "age": 22.5, "favoriteFoods": ["fries"]}


def test_store_doc_omits_missing_age():
    rec = PersonRecord(name="Ann")
    assert rec.to_store_doc() == {"name": "Ann", "favoriteFoods": []}
    assert rec.to_api_doc() == {"name": "Ann"}


@pytest.mark.parametrize("data", [{}, {"name": ""}, {"name": "  "}, {"name": "Kid", "age": False}, {"name": "X", "favoriteFoods": "pizza"}])
def test_invalid_people_are_rejected(data):
    with pytest.raises(pydantic.ValidationError):
        PersonRecord.model_validate(data)


def test_object_id_or_none():
    oid = ObjectId()
    assert object_id_or_none(oid) is oid
    assert object_id_or_none(str(oid)) == oid
    assert object_id_or_none("some_id_here") is None
    assert object_id_or_none("zz" * 12) is None
    assert object_id_or_none(None) is None
