"""
Pagination metadata shared by all list endpoints.
"""
from __future__ import annotations

import math

from pydantic import BaseModel, computed_field


class Pagination(BaseModel):
    current_page: int
    limit: int
    total: int

    @computed_field  # type: ignore[misc]
    @property
    def total_pages(self) -> int:
        if self.limit == 0:
            return 0
        return math.ceil(self.total / self.limit)
