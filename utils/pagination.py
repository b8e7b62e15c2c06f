from typing import Any, Dict, Optional


def paginate_results(page: int, limit: int, total_count: int) -> Dict[str, Any]:
    """
    Compute page boundaries for a result set of `total_count` items.

    Args:
        page: 1-based page number
        limit: page size
        total_count: number of items available

    Returns:
        Dict with `startIndex`, `endIndex` and a `results` dict holding the
        `previous` / `next` page descriptors (None when there is no such page)
    """
    start_index = (page - 1) * limit
    end_index = start_index + limit

    previous: Optional[Dict[str, int]] = None
    next_page: Optional[Dict[str, int]] = None

    if start_index > 0:
        previous = {"page": page - 1, "limit": limit}

    if end_index < total_count:
        next_page = {"page": page + 1, "limit": limit}

    return {
        "startIndex": start_index,
        "endIndex": end_index,
        "results": {
            "previous": previous,
            "next": next_page,
        },
    }


def paginated_response(paginated: Dict[str, Any], results: list) -> Dict[str, Any]:
    """Shape a page of documents the way every list endpoint returns it"""
    return {
        "previous": paginated["results"]["previous"],
        "results": results,
        "next": paginated["results"]["next"],
    }
