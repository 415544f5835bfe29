"""Pydantic models for Expense data"""
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class ExpenseBase(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        allow_inf_nan=False,
    )

    @field_validator("expense_date", check_fields=False)
    @classmethod
    def to_naive_local(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored dates and timeframe bounds are naive local time
        if value is not None and value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value


class ExpenseCreate(ExpenseBase):
    """Fields a client submits when recording a new expense."""
    description: str
    category: str
    amount: float
    expense_date: datetime
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class ExpenseUpdate(ExpenseBase):
    """Partial update; fields left as None keep their stored value."""
    description: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[float] = None
    expense_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class Expense(ExpenseCreate):
    """
    Represents a single stored expense, as returned to API clients.
    """
    id: Optional[str] = None
    receipt: Optional[str] = None
