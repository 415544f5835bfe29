"""Service layer for handling expense-related logic."""
import logging
from typing import Optional
from fastapi import UploadFile
from models.expense import Expense, ExpenseCreate, ExpenseUpdate
from models.results import OperationResult
from services.expense_query import build_expense_query
from services.expense_store import ExpenseStore
from utils.receipt_storage import ReceiptStorage

logger = logging.getLogger(__name__)


async def create_expense(
    store: ExpenseStore,
    storage: ReceiptStorage,
    payload: ExpenseCreate,
    upload: Optional[UploadFile] = None,
) -> OperationResult:
    """
    Stores the attachment (if any) and inserts a new expense record.
    The created record is returned in `data`.
    """
    logger.info(f"Creating expense '{payload.description}' ({payload.category}, {payload.amount})")
    try:
        receipt = await storage.save(upload)
    except Exception as e:
        logger.exception(f"Error storing receipt for new expense: {e}")
        return OperationResult.failure("Failed to create expense")

    expense = Expense(**payload.model_dump(), receipt=receipt)
    return await store.insert_one(expense)


async def list_expenses(
    store: ExpenseStore,
    category: Optional[str] = None,
    search: Optional[str] = None,
    timeframe: Optional[str] = None,
    sort_by: Optional[str] = None,
) -> OperationResult:
    """Fetches expenses matching the query parameters, in the requested order."""
    query = build_expense_query(category=category, search=search, timeframe=timeframe, sort_by=sort_by)
    return await store.find_many(query.filter, query.sort)


async def get_expense(store: ExpenseStore, expense_id: str) -> OperationResult:
    return await store.find_by_id(expense_id)


async def update_expense(
    store: ExpenseStore,
    storage: ReceiptStorage,
    expense_id: str,
    changes: ExpenseUpdate,
    upload: Optional[UploadFile] = None,
    delete_replaced: bool = True,
) -> OperationResult:
    """
    Merges the supplied fields over an existing expense.

    The stored receipt is only replaced when a new file is uploaded. When
    `delete_replaced` is set, the previous file is removed afterwards.
    """
    existing = await store.find_by_id(expense_id)
    if not existing.ok:
        return existing
    current: Expense = existing.data

    update_data = changes.model_dump(by_alias=True, exclude_none=True)
    try:
        new_receipt = await storage.save(upload)
    except Exception as e:
        logger.exception(f"Error storing receipt for expense {expense_id}: {e}")
        return OperationResult.failure("Error updating expense")
    if new_receipt:
        update_data["receipt"] = new_receipt

    result = await store.update_by_id(expense_id, update_data)
    if result.ok and new_receipt and current.receipt and delete_replaced:
        storage.delete(current.receipt)
    return result


async def delete_expense(store: ExpenseStore, storage: ReceiptStorage, expense_id: str) -> OperationResult:
    """Removes an expense and, best-effort, its stored receipt file."""
    existing = await store.find_by_id(expense_id)
    if not existing.ok:
        return existing
    expense: Expense = existing.data

    if expense.receipt:
        # Failure is logged by the storage and does not block the record deletion
        storage.delete(expense.receipt)

    result = await store.delete_by_id(expense_id)
    if not result.ok:
        return result
    return OperationResult.success({"message": "Expense deleted successfully"})
