"""페이지네이션 (OFFSET/LIMIT paging and the ``{data, meta}`` envelope)."""

import math
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


def build_page(items: Sequence[Any], total: int, page: int, limit: int) -> dict[str, Any]:
    """목록 응답 봉투.

    Returns:
        dict: ``{"data": [...], "meta": {"total", "page", "limit", "total_pages"}}``
    """
    return {
        "data": list(items),
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if limit > 0 else 0,
        },
    }


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int = 1,
    per_page: int = 20,
) -> tuple[Sequence[Any], int]:
    """(페이지 행, 전체 개수).

    The count runs over the unordered query as a subquery, so joins and
    filters in ``query`` are counted exactly as they are paged.
    """
    counted = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await db.execute(counted)).scalar() or 0
    rows = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
    return rows.scalars().all(), total
