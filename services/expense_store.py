"""MongoDB persistence for expense documents."""
import logging
from typing import Any, Dict, List, Optional, Tuple
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection  # Type hint for collection
from pymongo import ReturnDocument
from pydantic import ValidationError
from models.expense import Expense
from models.results import OperationResult

logger = logging.getLogger(__name__)


def _to_object_id(expense_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError):
        return None


def document_to_expense(doc: Dict[str, Any]) -> Expense:
    """Converts a raw Mongo document into an Expense, exposing `_id` as a string `id`."""
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return Expense.model_validate(doc)


class ExpenseStore:
    """
    Wraps the expenses collection. Every method returns an OperationResult
    instead of raising, so callers never see driver exceptions.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def insert_one(self, expense: Expense) -> OperationResult:
        document = expense.model_dump(by_alias=True, exclude={"id"})
        try:
            result = await self.collection.insert_one(document)
        except Exception as e:
            logger.exception(f"Database error inserting expense: {e}")
            return OperationResult.failure("Failed to create expense")
        created = expense.model_copy(update={"id": str(result.inserted_id)})
        logger.info(f"Inserted expense {created.id}")
        return OperationResult.success(created)

    async def find_many(self, filter_doc: Dict[str, Any], sort: List[Tuple[str, int]]) -> OperationResult:
        logger.info(f"Fetching expenses with filter {filter_doc}, sort {sort}")
        expenses = []
        try:
            cursor = self.collection.find(filter_doc).sort(sort)
            async for doc in cursor:
                try:
                    expenses.append(document_to_expense(doc))
                except ValidationError as e:
                    logger.error(f"Data validation error for document ID {doc.get('_id', 'N/A')}: {e}")
                    # Skip invalid documents
                    continue
        except Exception as e:
            logger.exception(f"Database error fetching expenses: {e}")
            return OperationResult.failure("Failed to fetch expenses")
        logger.info(f"Fetched {len(expenses)} expenses.")
        return OperationResult.success(expenses)

    async def find_by_id(self, expense_id: str) -> OperationResult:
        object_id = _to_object_id(expense_id)
        if object_id is None:
            logger.info(f"Malformed expense id '{expense_id}'")
            return OperationResult.not_found()
        try:
            doc = await self.collection.find_one({"_id": object_id})
            if doc is None:
                return OperationResult.not_found()
            return OperationResult.success(document_to_expense(doc))
        except Exception as e:
            logger.exception(f"Database error retrieving expense {expense_id}: {e}")
            return OperationResult.failure("Error retrieving expense")

    async def update_by_id(self, expense_id: str, changes: Dict[str, Any]) -> OperationResult:
        object_id = _to_object_id(expense_id)
        if object_id is None:
            return OperationResult.not_found()
        try:
            if changes:
                doc = await self.collection.find_one_and_update(
                    {"_id": object_id},
                    {"$set": changes},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                doc = await self.collection.find_one({"_id": object_id})
            if doc is None:
                return OperationResult.not_found()
            logger.info(f"Updated expense {expense_id} fields: {sorted(changes)}")
            return OperationResult.success(document_to_expense(doc))
        except Exception as e:
            logger.exception(f"Database error updating expense {expense_id}: {e}")
            return OperationResult.failure("Error updating expense")

    async def delete_by_id(self, expense_id: str) -> OperationResult:
        object_id = _to_object_id(expense_id)
        if object_id is None:
            return OperationResult.not_found()
        try:
            result = await self.collection.delete_one({"_id": object_id})
        except Exception as e:
            logger.exception(f"Database error deleting expense {expense_id}: {e}")
            return OperationResult.failure("Error deleting expense")
        if result.deleted_count == 0:
            return OperationResult.not_found()
        logger.info(f"Deleted expense {expense_id}")
        return OperationResult.success(result.deleted_count)
