"""API Routes for expenses"""
from fastapi import APIRouter, UploadFile, File, Form, HTTPException, Depends, Request, Query
from fastapi.responses import JSONResponse
from typing import List, Annotated, Optional
from datetime import datetime
from config import Settings
from services import expenses_service
from services.expense_store import ExpenseStore
from models.expense import Expense, ExpenseCreate, ExpenseUpdate
from models.results import OperationResult, ResultStatus
from utils.receipt_storage import ReceiptStorage
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Functions ---
def get_expense_store(request: Request) -> ExpenseStore:
    """Dependency to get the expense store backed by the MongoDB collection in application state."""
    collection = getattr(request.app.state, "expenses_collection", None)
    if collection is None:
        logger.error("Expenses collection not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return ExpenseStore(collection)

def get_receipt_storage(request: Request) -> ReceiptStorage:
    return request.app.state.receipt_storage

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

# Type hints for the dependencies
ExpenseStoreDep = Annotated[ExpenseStore, Depends(get_expense_store)]
ReceiptStorageDep = Annotated[ReceiptStorage, Depends(get_receipt_storage)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

STATUS_CODES = {
    ResultStatus.NOT_FOUND: 404,
    ResultStatus.ERROR: 500,
}

def error_response(result: OperationResult) -> JSONResponse:
    """Translates a failed service result into an HTTP error response."""
    return JSONResponse(status_code=STATUS_CODES.get(result.status, 500), content={"error": result.error})

# --- API Routes ---

@router.post("/expenses", response_model=Expense, status_code=201, summary="Create Expense", description="Records a new expense, optionally storing an uploaded receipt.")
async def create_expense(
    store: ExpenseStoreDep,
    storage: ReceiptStorageDep,
    description: Annotated[str, Form()],
    category: Annotated[str, Form()],
    amount: Annotated[float, Form(allow_inf_nan=False)],
    expense_date: Annotated[datetime, Form(alias="expenseDate")],
    payment_method: Annotated[Optional[str], Form(alias="paymentMethod")] = None,
    notes: Annotated[Optional[str], Form()] = None,
    receipt: Annotated[Optional[UploadFile], File()] = None,
):
    logger.info(f"POST /expenses called (receipt attached: {receipt is not None})")
    payload = ExpenseCreate(
        description=description,
        category=category,
        amount=amount,
        expense_date=expense_date,
        payment_method=payment_method,
        notes=notes,
    )
    result = await expenses_service.create_expense(store, storage, payload, receipt)
    if not result.ok:
        return error_response(result)
    return result.data

@router.get("/expenses", response_model=List[Expense], summary="List Expenses", description="Lists expenses filtered by category, description search and timeframe, newest first by default.")
async def get_expenses(
    store: ExpenseStoreDep,
    category: Optional[str] = Query(None, description="Exact category, or 'all'."),
    search: Optional[str] = Query(None, description="Case-insensitive substring of the description."),
    timeframe: Optional[str] = Query(None, description="thisMonth, lastMonth, thisQuarter, thisYear or lastYear."),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="date, dateAsc, amountDesc or amountAsc."),
):
    logger.info(f"GET /expenses called: category={category} search={search} timeframe={timeframe} sortBy={sort_by}")
    result = await expenses_service.list_expenses(store, category=category, search=search, timeframe=timeframe, sort_by=sort_by)
    if not result.ok:
        return error_response(result)
    return result.data

@router.get("/expenses/{expense_id}", response_model=Expense, summary="Get Expense")
async def get_expense(expense_id: str, store: ExpenseStoreDep):
    result = await expenses_service.get_expense(store, expense_id)
    if not result.ok:
        return error_response(result)
    return result.data

@router.put("/expenses/{expense_id}", response_model=Expense, summary="Update Expense", description="Updates any subset of fields. The stored receipt is kept unless a new file is uploaded.")
async def update_expense(
    expense_id: str,
    store: ExpenseStoreDep,
    storage: ReceiptStorageDep,
    settings: SettingsDep,
    description: Annotated[Optional[str], Form()] = None,
    category: Annotated[Optional[str], Form()] = None,
    amount: Annotated[Optional[float], Form(allow_inf_nan=False)] = None,
    expense_date: Annotated[Optional[datetime], Form(alias="expenseDate")] = None,
    payment_method: Annotated[Optional[str], Form(alias="paymentMethod")] = None,
    notes: Annotated[Optional[str], Form()] = None,
    receipt: Annotated[Optional[UploadFile], File()] = None,
):
    logger.info(f"PUT /expenses/{expense_id} called (new receipt: {receipt is not None})")
    changes = ExpenseUpdate(
        description=description,
        category=category,
        amount=amount,
        expense_date=expense_date,
        payment_method=payment_method,
        notes=notes,
    )
    result = await expenses_service.update_expense(
        store,
        storage,
        expense_id,
        changes,
        receipt,
        delete_replaced=settings.delete_replaced_receipts,
    )
    if not result.ok:
        return error_response(result)
    return result.data

@router.delete("/expenses/{expense_id}", summary="Delete Expense", description="Deletes an expense and its stored receipt file, if any.")
async def delete_expense(expense_id: str, store: ExpenseStoreDep, storage: ReceiptStorageDep):
    logger.warning(f"DELETE /expenses/{expense_id} called.")
    result = await expenses_service.delete_expense(store, storage, expense_id)
    if not result.ok:
        return error_response(result)
    return result.data
