from __future__ import annotations

from datetime import date

from ..core.exceptions import ValidationError


def require_date_range(start: date, end: date, *, max_days: int) -> tuple[date, date]:
    if end < start:
        raise ValidationError("end_date must not be before start_date")
    if (end - start).days + 1 > max_days:
        raise ValidationError(f"date range may not exceed {max_days} days")
    return start, end


def clamp_page(page: int, limit: int, *, max_limit: int) -> tuple[int, int]:
    page = max(int(page or 1), 1)
    limit = int(limit or max_limit)
    if limit < 1:
        raise ValidationError("limit must be positive")
    return page, min(limit, max_limit)
