"""
Walk through every people-store operation once, in order, against MONGO_URI.

    python demo.py

Each step logs its own result or failure; a failing step does not stop the run.
"""

from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

from persistence.database import DatabaseManager
from persistence.repositories import AsyncPersonRepository, MongoPersonRepository
from persistence.results import OperationResult
from settings import Settings, get_settings

logger = logging.getLogger("demo")

JOHN_DOE = {"name": "John Doe", "age": 25, "favoriteFoods": ["pizza", "pasta"]}

ARRAY_OF_PEOPLE = [
    {"name": "Alice", "age": 30, "favoriteFoods": ["sushi", "ramen"]},
    {"name": "Bob", "age": 22, "favoriteFoods": ["burger", "fries"]},
    {"name": "Mary", "age": 28, "favoriteFoods": ["salad"]},
]


def _report(step: str, result: OperationResult) -> None:
    if not result.ok:
        # The repository already logged the failure with its operation name.
        logger.info("%s: failed (%s)", step, type(result.error).__name__)
        return
    value = result.value
    if isinstance(value, list):
        shown = [p.to_api_doc() for p in value]
    elif hasattr(value, "to_api_doc"):
        shown = value.to_api_doc()
    else:
        shown = value
    logger.info("%s: %s", step, shown)


async def run_walkthrough(repo: AsyncPersonRepository) -> dict[str, OperationResult]:
    """Run the ten operations in tutorial order; returns each step's result by name."""
    results: dict[str, OperationResult] = {}

    results["create_one"] = await repo.create_one(JOHN_DOE)
    _report("Person saved", results["create_one"])

    results["create_many"] = await repo.create_many(ARRAY_OF_PEOPLE)
    _report("People created", results["create_many"])

    results["find_by_name"] = await repo.find_by_name("Alice")
    _report("People found by name", results["find_by_name"])

    results["find_one_by_food"] = await repo.find_one_by_food("pizza")
    _report("Person who likes pizza", results["find_one_by_food"])

    john = results["create_one"].value if results["create_one"].ok else None
    john_id = john.id if john is not None else ""

    results["find_by_id"] = await repo.find_by_id(john_id)
    _report("Person by ID", results["find_by_id"])

    results["update_by_find_then_save"] = await repo.add_favorite_food(john_id, "hamburger")
    _report("Updated person", results["update_by_find_then_save"])

    results["update_age_by_name"] = await repo.update_age_by_name("Alice", 20)
    _report("Updated person age", results["update_age_by_name"])

    results["delete_by_id"] = await repo.delete_by_id(john_id)
    _report("Removed person", results["delete_by_id"])

    results["delete_many_by_name"] = await repo.delete_many_by_name("Mary")
    _report("Remove result (deletedCount)", results["delete_many_by_name"])

    results["query_chain"] = await repo.query_chain("burritos")
    _report("Query chain result", results["query_chain"])

    return results


async def main(settings: Settings | None = None) -> None:
    database = DatabaseManager(settings or get_settings())
    await database.initialize()
    try:
        await run_walkthrough(MongoPersonRepository(database.people_collection()))
    finally:
        await database.close()


if __name__ == "__main__":
    load_dotenv()
    _settings = get_settings()
    logging.basicConfig(level=_settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main(_settings))
