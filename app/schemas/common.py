"""Response envelope shared by every endpoint"""
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """{status, message, data?} envelope"""
    status: str = "success"
    message: Optional[str] = None
    data: Optional[DataT] = None


class ErrorResponse(BaseModel):
    """{status: "error", message, errors?} envelope"""
    status: str = "error"
    message: str
    errors: Optional[Dict[str, List[str]]] = None


class PageMeta(BaseModel):
    total: int
    limit: int
    offset: int


class Page(BaseModel, Generic[DataT]):
    items: List[DataT]
    meta: PageMeta


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    return {"status": "success", "message": message, "data": data}
