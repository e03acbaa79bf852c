"""Pagination helpers"""

import math


def page_offset(page: int, limit: int) -> int:
    """Rows to skip for a 1-based page number"""
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show `total` rows, `limit` per page"""
    return math.ceil(total / limit) if limit > 0 else 0
