from typing import Any, Dict, Iterable, List, Optional

import firebase_admin
from firebase_admin import firestore as fs
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from utils.sorting import SortOrder, sort_posts

POSTS = "posts"
USERS = "users"
SUBREDDITS = "subreddits"

# Firestore 'in' query limitation
IN_QUERY_CHUNK = 10


def _to_dict(snapshot) -> Dict[str, Any]:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


def _without_comments(post: Dict[str, Any]) -> Dict[str, Any]:
    post.pop("comments", None)
    return post


class FirestoreDB:
    def __init__(self, app: firebase_admin.App):
        self.db = fs.client(app)

    def collection(self, name: str):
        return self.db.collection(name)

    def _get(self, collection: str, doc_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not doc_id:
            return None
        snapshot = self.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return _to_dict(snapshot)

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        """Get a post by ID, comments included"""
        return self._get(POSTS, post_id)

    def get_user(self, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._get(USERS, user_id)

    def get_subreddit(self, subreddit_id: Optional[str]) -> Optional[Dict[str, Any]]:
        return self._get(SUBREDDITS, subreddit_id)

    def get_subreddits(self, subreddit_ids: List[str]) -> List[Dict[str, Any]]:
        """Batch fetch subreddits, silently skipping ids that do not exist"""
        if not subreddit_ids:
            return []
        refs = [self.collection(SUBREDDITS).document(sub_id) for sub_id in subreddit_ids]
        return [_to_dict(snap) for snap in self.db.get_all(refs) if snap.exists]

    def find_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive exact match on username"""
        wanted = username.strip().lower()
        for doc in self.collection(USERS).stream():
            data = doc.to_dict() or {}
            if (data.get("username") or "").lower() == wanted:
                return _to_dict(doc)
        return None

    def count_posts(self, author: Optional[str] = None) -> int:
        query = self.collection(POSTS)
        if author:
            query = query.where(filter=FieldFilter("author", "==", author))
        result = query.count().get()
        return int(result[0][0].value)

    def get_posts_page(
            self,
            order: Optional[SortOrder],
            offset: int,
            limit: int,
            author: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """One page of posts without their comments"""
        query = self.collection(POSTS)
        if author:
            query = query.where(filter=FieldFilter("author", "==", author))
        if order is not None:
            field, direction = order
            query = query.order_by(field, direction=direction)

        docs = query.offset(offset).limit(limit).stream()
        return [_without_comments(_to_dict(doc)) for doc in docs]

    def get_posts_in_subreddits(
            self,
            subreddit_ids: List[str],
            order: SortOrder,
            limit: int,
    ) -> List[Dict[str, Any]]:
        """
        The first `limit` posts, in `order`, across the given subreddits,
        without comments. Each 'in' chunk is ordered and limited by Firestore
        and the chunks are merged in memory.
        """
        field, direction = order
        posts = []
        for i in range(0, len(subreddit_ids), IN_QUERY_CHUNK):
            chunk = subreddit_ids[i:i + IN_QUERY_CHUNK]
            docs = self.collection(POSTS).where(
                filter=FieldFilter("subreddit", "in", chunk)
            ).order_by(field, direction=direction).limit(limit).stream()
            posts.extend(_without_comments(_to_dict(doc)) for doc in docs)
        return sort_posts(posts, order)[:limit]

    def search_posts(self, query: str) -> List[Dict[str, Any]]:
        """
        Posts whose title or text contains `query`, case-insensitive.
        The query is compared as a literal string.
        """
        needle = query.lower()
        results = []
        for doc in self.collection(POSTS).stream():
            data = doc.to_dict() or {}
            title = data.get("title", "") or ""
            text = data.get("textSubmission", "") or ""
            if needle in title.lower() or needle in text.lower():
                results.append(_without_comments(_to_dict(doc)))
        return results

    def _lookup(self, collection: str, ids: Iterable[str], field: str) -> Dict[str, Dict[str, Any]]:
        """Map of id -> {id, field} for the referenced documents that exist"""
        unique_ids = sorted({doc_id for doc_id in ids if doc_id})
        if not unique_ids:
            return {}
        refs = [self.collection(collection).document(doc_id) for doc_id in unique_ids]
        found = {}
        for snap in self.db.get_all(refs, field_paths=[field]):
            if snap.exists:
                found[snap.id] = {"id": snap.id, field: (snap.to_dict() or {}).get(field)}
        return found

    def populate_posts(self, posts: List[Dict[str, Any]], with_comments: bool = False) -> List[Dict[str, Any]]:
        """
        Replace the author / subreddit ids of each post with {id, username} /
        {id, subredditName}. With `with_comments`, comment and reply authors
        are resolved as well. Dangling references become None.
        """
        user_ids = [post.get("author") for post in posts]
        if with_comments:
            for post in posts:
                for comment in post.get("comments") or []:
                    user_ids.append(comment.get("commentedBy"))
                    user_ids.extend(reply.get("repliedBy") for reply in comment.get("replies") or [])

        users = self._lookup(USERS, user_ids, "username")
        subreddits = self._lookup(SUBREDDITS, [post.get("subreddit") for post in posts], "subredditName")

        for post in posts:
            post["author"] = users.get(post.get("author"))
            post["subreddit"] = subreddits.get(post.get("subreddit"))
            if with_comments:
                for comment in post.get("comments") or []:
                    comment["commentedBy"] = users.get(comment.get("commentedBy"))
                    for reply in comment.get("replies") or []:
                        reply["repliedBy"] = users.get(reply.get("repliedBy"))
        return posts

    def create_post(self, post_data: Dict[str, Any], author_id: str, subreddit_id: str) -> str:
        """
        Create a post and link it to its subreddit and author.
        All three writes are committed in a single batch.
        """
        post_ref = self.collection(POSTS).document()
        batch = self.db.batch()
        batch.set(post_ref, post_data)
        batch.update(self.collection(SUBREDDITS).document(subreddit_id), {
            "posts": firestore.ArrayUnion([post_ref.id]),
        })
        batch.update(self.collection(USERS).document(author_id), {
            "posts": firestore.ArrayUnion([post_ref.id]),
            "karmaPoints.postKarma": firestore.Increment(1),
        })
        batch.commit()
        return post_ref.id

    def update_post(self, post_id: str, fields: Dict[str, Any]) -> None:
        self.collection(POSTS).document(post_id).update(fields)

    def delete_post(self, post_id: str, author_id: str, subreddit_id: str) -> None:
        """Delete a post and unlink it from its subreddit and author in one batch"""
        batch = self.db.batch()
        batch.delete(self.collection(POSTS).document(post_id))
        batch.update(self.collection(SUBREDDITS).document(subreddit_id), {
            "posts": firestore.ArrayRemove([post_id]),
        })
        batch.update(self.collection(USERS).document(author_id), {
            "posts": firestore.ArrayRemove([post_id]),
        })
        batch.commit()

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> None:
        self.collection(USERS).document(user_id).update(fields)
