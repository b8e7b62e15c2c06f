from typing import Any, Dict, List, Optional, Tuple

from google.cloud import firestore

SortOrder = Tuple[str, str]

SORT_ORDERS: Dict[str, SortOrder] = {
    "new": ("createdAt", firestore.Query.DESCENDING),
    "top": ("pointsCount", firestore.Query.DESCENDING),
    "best": ("voteRatio", firestore.Query.DESCENDING),
    "hot": ("hotAlgo", firestore.Query.DESCENDING),
    "controversial": ("controversialAlgo", firestore.Query.DESCENDING),
    "old": ("createdAt", firestore.Query.ASCENDING),
}

HOT_ORDER = SORT_ORDERS["hot"]


def get_sort_order(sort_by: Optional[str]) -> Optional[SortOrder]:
    """
    Map a `sortby` token to a (field, direction) pair.
    Unknown or missing tokens return None, meaning natural storage order.
    """
    if not sort_by:
        return None
    return SORT_ORDERS.get(sort_by)


def sort_posts(posts: List[Dict[str, Any]], order: Optional[SortOrder]) -> List[Dict[str, Any]]:
    """
    Apply a sort order to posts already loaded in memory.
    Posts missing the sort field come last in either direction.
    """
    if order is None:
        return posts

    field, direction = order
    present = [post for post in posts if post.get(field) is not None]
    missing = [post for post in posts if post.get(field) is None]
    return sorted(
        present,
        key=lambda post: post[field],
        reverse=direction == firestore.Query.DESCENDING,
    ) + missing
