# people_endpoints.py
from __future__ import annotations

import logging
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request

from persistence.errors import InvalidArgument, NotFound, PersonStoreError, StoreError, ValidationError
from persistence.person_state import PersonRecord
from persistence.repositories import AsyncPersonRepository, MongoPersonRepository
from persistence.results import OperationResult

router = APIRouter(prefix="/people", tags=["people"])
logger = logging.getLogger(__name__)

T = TypeVar("T")

# -------------------------------------------------------------------
# Error -> HTTP status
# -------------------------------------------------------------------
STATUS_BY_ERROR: dict[type[PersonStoreError], int] = {
    ValidationError: 422,
    InvalidArgument: 400,
    NotFound: 404,
    StoreError: 503,
}


def get_repository(request: Request) -> AsyncPersonRepository:
    repo = getattr(request.app.state, "people_repository", None)
    if repo is None:
        repo = MongoPersonRepository(request.app.state.database.people_collection())
        request.app.state.people_repository = repo
    return repo


def _unwrap(result: OperationResult[T]) -> T | None:
    if result.error is not None:
        status = STATUS_BY_ERROR.get(type(result.error), 500)
        raise HTTPException(status_code=status, detail=result.error.message)
    return result.value


def _found(result: OperationResult[PersonRecord], what: str) -> dict[str, Any]:
    person = _unwrap(result)
    if person is None:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return person.to_api_doc()


# -------------------------------------------------------------------
# Create
# -------------------------------------------------------------------
@router.post("", status_code=201)
async def create_person(body: dict[str, Any], repo: AsyncPersonRepository = Depends(get_repository)):
    person = _unwrap(await repo.create_one(body))
    return person.to_api_doc()


@router.post("/batch", status_code=201)
async def create_people(body: list[dict[str, Any]], repo: AsyncPersonRepository = Depends(get_repository)):
    people = _unwrap(await repo.create_many(body)) or []
    return [p.to_api_doc() for p in people]


# -------------------------------------------------------------------
# Read
# -------------------------------------------------------------------
@router.get("")
async def find_people_by_name(name: str, repo: AsyncPersonRepository = Depends(get_repository)):
    people = _unwrap(await repo.find_by_name(name)) or []
    return [p.to_api_doc() for p in people]


@router.get("/by-food/{food}")
async def find_one_by_food(food: str, repo: AsyncPersonRepository = Depends(get_repository)):
    return _found(await repo.find_one_by_food(food), f"person who likes {food!r}")


@router.get("/query")
async def query_chain(food: str = "burritos", repo: AsyncPersonRepository = Depends(get_repository)):
    people = _unwrap(await repo.query_chain(food)) or []
    return [p.to_api_doc() for p in people]


@router.get("/{person_id}")
async def find_person_by_id(person_id: str, repo: AsyncPersonRepository = Depends(get_repository)):
    return _found(await repo.find_by_id(person_id), f"person {person_id}")


# -------------------------------------------------------------------
# Update
# -------------------------------------------------------------------
@router.patch("/age")
async def update_age_by_name(
    name: str,
    body: dict[str, Any],
    repo: AsyncPersonRepository = Depends(get_repository),
):
    if "age" not in body:
        raise HTTPException(status_code=422, detail="age is required")
    person = _unwrap(await repo.update_age_by_name(name, body["age"]))
    return person.to_api_doc()


@router.post("/{person_id}/favorite-foods")
async def add_favorite_food(
    person_id: str,
    body: dict[str, Any] | None = None,
    repo: AsyncPersonRepository = Depends(get_repository),
):
    food = (body or {}).get("food", "hamburger")
    if not isinstance(food, str) or not food.strip():
        raise HTTPException(status_code=422, detail="food must be a non-empty string")
    person = _unwrap(await repo.add_favorite_food(person_id, food))
    return person.to_api_doc()


# -------------------------------------------------------------------
# Delete
# -------------------------------------------------------------------
@router.delete("/{person_id}")
async def delete_person_by_id(person_id: str, repo: AsyncPersonRepository = Depends(get_repository)):
    return _found(await repo.delete_by_id(person_id), f"person {person_id}")


@router.delete("")
async def delete_people_by_name(name: str, repo: AsyncPersonRepository = Depends(get_repository)):
    count = _unwrap(await repo.delete_many_by_name(name)) or 0
    logger.info("Removed %s people named %r", count, name)
    return {"deletedCount": count}
