"""Shared response envelope and pagination helpers.

Every endpoint answers with ``{success, message, data?, pagination?}``.
"""

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PageParams(BaseModel):
    """Page/limit query parameters shared by list endpoints."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def build(self, total: int) -> Pagination:
        return Pagination(
            page=self.page,
            limit=self.limit,
            total=total,
            pages=math.ceil(total / self.limit) if total else 0,
        )


def envelope(
    message: str,
    data: Any = None,
    pagination: Optional[Pagination] = None,
    success: bool = True,
) -> Dict[str, Any]:
    """Build an envelope dict, leaving out empty optional members."""
    body: Dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination.model_dump()
    return body
