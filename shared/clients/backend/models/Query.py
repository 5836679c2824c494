"""Backend-independent query description for collection reads and subscriptions."""

from typing import Any, Literal

from pydantic import BaseModel

FilterOperator = Literal["==", "!=", "<", "<=", ">", ">="]


class QueryFilter(BaseModel):
    """
    A single field comparison, e.g. ``QueryFilter(field="name", op="==", value="QA")``.
    """
    field: str
    op: FilterOperator = "=="
    value: Any = None


class QuerySpec(BaseModel):
    """
    Filters (AND-combined), ordering and limit of a collection query.
    """
    filters: list[QueryFilter] = []
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None

    def where(self, field: str, op: FilterOperator, value: Any) -> "QuerySpec":
        """Return a copy with one more filter."""
        return self.model_copy(update={"filters": [*self.filters, QueryFilter(field=field, op=op, value=value)]})
