"""
Paging and sorting for list endpoints.

Clients may sort only by whitelisted fields; anything else raises
InvalidArgumentError (400) before a query is built.
"""

from dataclasses import dataclass

from sqlalchemy import Select

from bankcards.exceptions import InvalidArgumentError

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageParams:
    page: int = 0
    size: int = 10
    sort_by: str = "id"
    sort_dir: str = "asc"


def page_params(
    page: int,
    size: int,
    sort_by: str,
    sort_dir: str,
    allowed_sort_fields: tuple[str, ...],
) -> PageParams:
    """Validate raw paging input against a whitelist of sortable fields."""
    if sort_by not in allowed_sort_fields:
        raise InvalidArgumentError(f"Sorting by field '{sort_by}' is not allowed")

    direction = sort_dir.lower()
    if direction not in ("asc", "desc"):
        raise InvalidArgumentError(
            f"Invalid sort direction: '{sort_dir}'. Use 'asc' or 'desc'"
        )

    if page < 0:
        raise InvalidArgumentError("Page index must not be negative")
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise InvalidArgumentError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")

    return PageParams(page=page, size=size, sort_by=sort_by, sort_dir=direction)


def apply_page(query: Select, model, params: PageParams) -> Select:
    """Add ORDER BY / LIMIT / OFFSET for `params` to a select over `model`."""
    column = getattr(model, params.sort_by)
    ordering = column.desc() if params.sort_dir == "desc" else column.asc()
    return (
        query.order_by(ordering)
        .limit(params.size)
        .offset(params.page * params.size)
    )
