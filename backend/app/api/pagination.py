import math

from fastapi import Query
from pydantic import BaseModel


class PageParams(BaseModel):
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def page_params(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PageParams:
    return PageParams(page=page, per_page=per_page)


def page_envelope(params: PageParams, total: int, items: list) -> dict:
    """Response body shared by every paginated listing."""
    return {
        "total": total,
        "page": params.page,
        "per_page": params.per_page,
        "pages": math.ceil(total / params.per_page) if total > 0 else 1,
        "items": items,
    }
