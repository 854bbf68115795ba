from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Protocol, Union

import pydantic
from bson import ObjectId
from bson.errors import InvalidDocument
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from .errors import InvalidArgument, NotFound, PersonStoreError, StoreError, ValidationError
from .person_state import ASCENDING, PERSON_FIELDS, AgeUpdate, PersonQuery, PersonRecord, object_id_or_none
from .results import OperationResult

logger = logging.getLogger(__name__)

PersonInput = Union[PersonRecord, Mapping[str, Any]]
# A mutation may edit the record in place (returning None) or return a replacement.
PersonMutation = Callable[[PersonRecord], Union[PersonRecord, None]]


class AsyncPersonRepository(Protocol):
    """
    Domain-level person persistence interface.
    Every call resolves to an OperationResult; none of them raise for store or input failures.
    """

    async def create_one(self, person: PersonInput) -> OperationResult[PersonRecord]: ...
    async def create_many(self, people: Iterable[PersonInput]) -> OperationResult[list[PersonRecord]]: ...

    async def find_by_name(self, name: str) -> OperationResult[list[PersonRecord]]: ...
    async def find_one_by_food(self, food: str) -> OperationResult[PersonRecord]: ...
    async def find_by_id(self, person_id: str) -> OperationResult[PersonRecord]: ...

    async def update_by_find_then_save(
        self, person_id: str, mutation: PersonMutation
    ) -> OperationResult[PersonRecord]: ...
    async def add_favorite_food(self, person_id: str, food: str = "hamburger") -> OperationResult[PersonRecord]: ...
    async def update_age_by_name(self, name: str, age: int | float) -> OperationResult[PersonRecord]: ...

    async def delete_by_id(self, person_id: str) -> OperationResult[PersonRecord]: ...
    async def delete_many_by_name(self, name: str) -> OperationResult[int]: ...

    async def query(self, query: PersonQuery) -> OperationResult[list[PersonRecord]]: ...
    async def query_chain(self, food: str = "burritos") -> OperationResult[list[PersonRecord]]: ...


def _validation_message(err: pydantic.ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ())) or "record"
        parts.append(f"{loc}: {e.get('msg')}")
    return "; ".join(parts)


def _to_record(operation: str, person: PersonInput) -> PersonRecord:
    if isinstance(person, PersonRecord):
        data: Mapping[str, Any] = person.model_dump(exclude_unset=True)
    elif isinstance(person, Mapping):
        data = person
    else:
        raise ValidationError(operation, f"expected a mapping of person fields, got {type(person).__name__}")
    try:
        return PersonRecord.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(operation, _validation_message(e)) from e


class MongoPersonRepository(AsyncPersonRepository):
    """
    Person repository over a Motor (or Motor-compatible) collection.

    Each public method is its own failure boundary: errors are logged with the
    operation name and handed back inside the OperationResult.
    """

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    async def _run(self, operation: str, call: Callable[[], Any]) -> OperationResult[Any]:
        try:
            value = await call()
        except (ValidationError, InvalidArgument, NotFound) as e:
            logger.warning("Error in %s: %s", operation, e.message)
            return OperationResult.failure(e)
        except (InvalidDocument, OverflowError) as e:
            # The driver refused to encode the document; nothing reached the server.
            logger.warning("Error in %s: %s", operation, e)
            return OperationResult.failure(ValidationError(operation, f"document cannot be stored: {e}"))
        except PyMongoError as e:
            logger.error("Error in %s: %r", operation, e)
            return OperationResult.failure(StoreError(operation, str(e) or type(e).__name__))
        except pydantic.ValidationError as e:
            # A stored document that no longer fits PersonRecord.
            logger.error("Error in %s: unreadable document: %s", operation, _validation_message(e))
            return OperationResult.failure(StoreError(operation, f"unreadable document: {_validation_message(e)}"))
        except PersonStoreError as e:
            logger.error("Error in %s: %s", operation, e.message)
            return OperationResult.failure(e)
        logger.debug("%s ok", operation)
        return OperationResult.success(operation, value)

    def _object_id(self, operation: str, person_id: Any) -> ObjectId:
        oid = object_id_or_none(person_id)
        if oid is None:
            raise InvalidArgument(operation, f"malformed id {person_id!r}")
        return oid

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------
    async def create_one(self, person: PersonInput) -> OperationResult[PersonRecord]:
        op = "create_one"

        async def _call() -> PersonRecord:
            doc = _to_record(op, person).to_store_doc()
            res = await self._collection.insert_one(doc)
            return PersonRecord.from_store_doc({**doc, "_id": res.inserted_id})

        return await self._run(op, _call)

    async def create_many(self, people: Iterable[PersonInput]) -> OperationResult[list[PersonRecord]]:
        op = "create_many"

        async def _call() -> list[PersonRecord]:
            # Validate the whole batch before anything is written.
            docs = []
            for i, p in enumerate(people):
                try:
                    docs.append(_to_record(op, p).to_store_doc())
                except ValidationError as e:
                    raise ValidationError(op, f"item {i}: {e.message}") from e
            if not docs:
                return []
            res = await self._collection.insert_many(docs, ordered=True)
            return [
                PersonRecord.from_store_doc({**doc, "_id": oid})
                for doc, oid in zip(docs, res.inserted_ids)
            ]

        return await self._run(op, _call)

    # ------------------------------------------------------------------
    # read
    # ------------------------------------------------------------------
    async def find_by_name(self, name: str) -> OperationResult[list[PersonRecord]]:
        return await self._find("find_by_name", PersonQuery(filter={"name": name}))

    async def find_one_by_food(self, food: str) -> OperationResult[PersonRecord]:
        op = "find_one_by_food"

        async def _call() -> PersonRecord | None:
            doc = await self._collection.find_one({"favoriteFoods": food})
            return None if doc is None else PersonRecord.from_store_doc(doc)

        return await self._run(op, _call)

    async def find_by_id(self, person_id: str) -> OperationResult[PersonRecord]:
        op = "find_by_id"

        async def _call() -> PersonRecord | None:
            doc = await self._collection.find_one({"_id": self._object_id(op, person_id)})
            return None if doc is None else PersonRecord.from_store_doc(doc)

        return await self._run(op, _call)

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------
    async def update_by_find_then_save(
        self, person_id: str, mutation: PersonMutation
    ) -> OperationResult[PersonRecord]:
        """
        Read-modify-write: fetch, apply `mutation`, then `$set`/`$unset` only the
        fields it changed. Other keys in the stored document are left alone.

        Not atomic. A concurrent write to the same fields between the two round
        trips is overwritten, and a concurrent delete surfaces as NotFound.
        """
        op = "update_by_find_then_save"

        async def _call() -> PersonRecord:
            oid = self._object_id(op, person_id)
            doc = await self._collection.find_one({"_id": oid})
            if doc is None:
                raise NotFound(op, f"person {person_id} not found")

            person = PersonRecord.from_store_doc(doc)
            changed = mutation(person)
            if changed is not None:
                person = changed

            # Re-validate: in-place edits bypass pydantic's field validators.
            updated = _to_record(op, person.model_dump(exclude={"id"}))
            body = updated.to_store_doc()
            changes = {k: v for k, v in body.items() if k not in doc or doc[k] != v}
            removed = [k for k in PERSON_FIELDS if k in doc and k not in body]

            update: dict[str, Any] = {}
            if changes:
                update["$set"] = changes
            if removed:
                update["$unset"] = {k: "" for k in removed}
            if not update:
                return PersonRecord.from_store_doc(doc)

            res = await self._collection.update_one({"_id": oid}, update)
            if res.matched_count == 0:
                raise NotFound(op, f"person {person_id} was removed before save")
            saved = {k: v for k, v in doc.items() if k not in removed}
            saved.update(changes)
            return PersonRecord.from_store_doc(saved)

        return await self._run(op, _call)

    async def add_favorite_food(self, person_id: str, food: str = "hamburger") -> OperationResult[PersonRecord]:
        def _append(person: PersonRecord) -> None:
            person.favoriteFoods.append(food)

        return await self.update_by_find_then_save(person_id, _append)

    async def update_age_by_name(self, name: str, age: int | float) -> OperationResult[PersonRecord]:
        """Atomic find-and-update of the first person named `name`."""
        op = "update_age_by_name"

        async def _call() -> PersonRecord:
            try:
                new_age = AgeUpdate(age=age).age
            except pydantic.ValidationError as e:
                raise ValidationError(op, _validation_message(e)) from e

            doc = await self._collection.find_one_and_update(
                {"name": name},
                {"$set": {"age": new_age}},
                return_document=ReturnDocument.AFTER,
            )
            if doc is None:
                raise NotFound(op, f"no person named {name!r}")
            return PersonRecord.from_store_doc(doc)

        return await self._run(op, _call)

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------
    async def delete_by_id(self, person_id: str) -> OperationResult[PersonRecord]:
        op = "delete_by_id"

        async def _call() -> PersonRecord | None:
            doc = await self._collection.find_one_and_delete({"_id": self._object_id(op, person_id)})
            return None if doc is None else PersonRecord.from_store_doc(doc)

        return await self._run(op, _call)

    async def delete_many_by_name(self, name: str) -> OperationResult[int]:
        op = "delete_many_by_name"

        async def _call() -> int:
            res = await self._collection.delete_many({"name": name})
            return int(res.deleted_count)

        return await self._run(op, _call)

    # ------------------------------------------------------------------
    # query chaining
    # ------------------------------------------------------------------
    async def query(self, query: PersonQuery) -> OperationResult[list[PersonRecord]]:
        return await self._find("query", query)

    async def _find(self, op: str, query: PersonQuery) -> OperationResult[list[PersonRecord]]:
        async def _call() -> list[PersonRecord]:
            if query.limit is not None and query.limit < 0:
                raise InvalidArgument(op, f"limit must be >= 0, got {query.limit}")

            try:
                hidden = query.hidden_fields()
            except ValueError as e:
                raise InvalidArgument(op, str(e)) from e

            cursor = self._collection.find(query.filter, query.projection)
            if query.sort:
                cursor = cursor.sort(query.sort)
            if query.limit:
                cursor = cursor.limit(query.limit)
            docs = await cursor.to_list(length=None)
            return [PersonRecord.from_store_doc(d, hidden) for d in docs]

        return await self._run(op, _call)

    async def query_chain(self, food: str = "burritos") -> OperationResult[list[PersonRecord]]:
        return await self._find(
            "query_chain",
            PersonQuery(
                filter={"favoriteFoods": food},
                sort=[("name", ASCENDING)],
                limit=2,
                projection={"age": 0},
            )
        )
