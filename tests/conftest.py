"""
Shared pytest fixtures: an in-memory Firestore, an S3 service backed by a
mocked boto3 client, and a TestClient with authentication overridden.
"""

import base64
import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from dependencies import get_current_user
from main import app
from models.user import User
from services.firestore import FirestoreDB
from services.s3 import S3Service
from utils.sorting import sort_posts

BUCKET = "test-bucket"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


class InMemoryFirestore(FirestoreDB):
    """
    FirestoreDB backed by plain dicts. Reference population is inherited
    from FirestoreDB, only document access is replaced.
    """

    def __init__(self):
        self.posts: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.subreddits: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _store(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return {"posts": self.posts, "users": self.users, "subreddits": self.subreddits}[collection]

    # seeding helpers

    def add_user(self, user_id: str, username: str, **fields) -> str:
        self.users[user_id] = {
            "username": username,
            "posts": [],
            "subscribedSubs": [],
            "karmaPoints": {"postKarma": 0, "commentKarma": 0},
            "avatar": {"exists": False, "imageLink": None, "imageId": None},
            **fields,
        }
        return user_id

    def add_subreddit(self, subreddit_id: str, name: str) -> str:
        self.subreddits[subreddit_id] = {"subredditName": name, "posts": []}
        return subreddit_id

    def add_post(self, author: str, subreddit: str, **fields) -> str:
        self._clock += timedelta(minutes=1)
        post = {
            "title": "post",
            "author": author,
            "subreddit": subreddit,
            "postType": "Text",
            "textSubmission": "body",
            "upvotedBy": [author],
            "pointsCount": 1,
            "voteRatio": 0,
            "hotAlgo": 0,
            "controversialAlgo": 0,
            "comments": [],
            "createdAt": self._clock,
            "updatedAt": self._clock,
            **fields,
        }
        post_id = f"post{next(self._ids)}"
        self.posts[post_id] = post
        self.subreddits[subreddit]["posts"].append(post_id)
        self.users[author]["posts"].append(post_id)
        return post_id

    # FirestoreDB surface

    def _get(self, collection: str, doc_id: Optional[str]) -> Optional[Dict[str, Any]]:
        data = self._store(collection).get(doc_id) if doc_id else None
        if data is None:
            return None
        return {**copy.deepcopy(data), "id": doc_id}

    def _all_posts(self, without_comments: bool = True) -> List[Dict[str, Any]]:
        posts = []
        for post_id in self.posts:
            post = self._get("posts", post_id)
            if without_comments:
                post.pop("comments", None)
            posts.append(post)
        return posts

    def get_subreddits(self, subreddit_ids):
        return [sub for sub in (self.get_subreddit(s) for s in subreddit_ids) if sub]

    def find_user_by_username(self, username):
        for user_id, data in self.users.items():
            if data["username"].lower() == username.strip().lower():
                return self._get("users", user_id)
        return None

    def count_posts(self, author=None):
        return len([p for p in self.posts.values() if author is None or p["author"] == author])

    def get_posts_page(self, order, offset, limit, author=None):
        posts = [p for p in self._all_posts() if author is None or p["author"] == author]
        return sort_posts(posts, order)[offset:offset + limit]

    def get_posts_in_subreddits(self, subreddit_ids, order, limit):
        posts = [p for p in self._all_posts() if p["subreddit"] in subreddit_ids]
        return sort_posts(posts, order)[:limit]

    def search_posts(self, query):
        needle = query.lower()
        return [
            p for p in self._all_posts()
            if needle in p.get("title", "").lower() or needle in (p.get("textSubmission") or "").lower()
        ]

    def _lookup(self, collection, ids, field):
        found = {}
        for doc_id in ids:
            data = self._store(collection).get(doc_id) if doc_id else None
            if data is not None:
                found[doc_id] = {"id": doc_id, field: data.get(field)}
        return found

    def create_post(self, post_data, author_id, subreddit_id):
        post_id = f"post{next(self._ids)}"
        self.posts[post_id] = copy.deepcopy(post_data)
        self.subreddits[subreddit_id]["posts"].append(post_id)
        self.users[author_id]["posts"].append(post_id)
        self.users[author_id]["karmaPoints"]["postKarma"] += 1
        return post_id

    def update_post(self, post_id, fields):
        self.posts[post_id].update(copy.deepcopy(fields))

    def delete_post(self, post_id, author_id, subreddit_id):
        del self.posts[post_id]
        self.subreddits[subreddit_id]["posts"].remove(post_id)
        self.users[author_id]["posts"].remove(post_id)

    def update_user(self, user_id, fields):
        self.users[user_id].update(copy.deepcopy(fields))


@pytest.fixture
def db():
    store = InMemoryFirestore()
    store.add_user("alice", "Alice")
    store.add_user("bob", "bob")
    store.add_subreddit("python", "Python")
    store.add_subreddit("golang", "golang")
    return store


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.meta.region_name = "us-east-2"
    return client


@pytest.fixture
def s3_service(s3_client):
    return S3Service(BUCKET, s3_client)


@pytest.fixture
def login():
    """Switch the user returned by the auth dependency"""

    def _login(user_id: str):
        app.dependency_overrides[get_current_user] = lambda: User(user_id=user_id)

    yield _login
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def client(db, s3_service, login):
    app.state.firestore = db
    app.state.s3_service = s3_service
    login("alice")
    yield TestClient(app)
