# ============================================================
# File: response.py - unified API response model
# ============================================================

from pydantic import BaseModel, Field
from typing import TypeVar, Generic, Optional

T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """Generic API response"""
    success: bool = Field(True, description="Request succeeded")
    data: Optional[T] = Field(None, description="Response data")
    error: Optional[str] = Field(None, description="Error message")

    @classmethod
    def ok(cls, data: T = None) -> "ApiResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        return cls(success=False, error=error)
