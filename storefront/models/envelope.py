"""Response envelope returned by every marketplace API endpoint"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiEnvelope(BaseModel, Generic[T]):
    """{"message": ..., "data": ...}"""
    message: Optional[str] = None
    data: T
