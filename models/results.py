"""Typed outcomes passed between the store, the service layer and the routes."""
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class ResultStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


class OperationResult(BaseModel):
    """
    Outcome of a store or service operation.

    `data` carries the payload on success; `error` carries a short,
    client-safe message otherwise.
    """
    status: ResultStatus
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @classmethod
    def success(cls, data: Any = None) -> "OperationResult":
        return cls(status=ResultStatus.SUCCESS, data=data)

    @classmethod
    def not_found(cls, error: str = "Expense not found") -> "OperationResult":
        return cls(status=ResultStatus.NOT_FOUND, error=error)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(status=ResultStatus.ERROR, error=error)
