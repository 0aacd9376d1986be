"""
Posts file accessor.

The whole JSON document is the unit of read and write: every mutation
loads the full list, changes it and writes it back. There is no locking,
so two overlapping writes can lose one of the updates.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from slugify import slugify


class StoreError(Exception):
    """The posts file could not be read, parsed or written."""


class PostNotFound(Exception):
    pass


def format_date(dt: datetime) -> str:
    return f"{dt:%B} {dt.day}, {dt.year}"


def make_post(
    post_id: int,
    title: str,
    summary: str,
    content: str,
    category: str,
    image: str,
    now: Optional[datetime] = None,
) -> Dict:
    return {
        "id": post_id,
        "date": format_date(now or datetime.now()),
        "title": title,
        "summary": summary,
        "content": content,
        "category": category,
        "image": image,
        "slug": slugify(title),
        "categorySlug": slugify(category or ""),
        "comments": [],
    }


def same_id(stored, wanted: int) -> bool:
    try:
        return int(stored) == wanted
    except (TypeError, ValueError):
        return False


def ensure_data_file(path: Path) -> None:
    """Make sure the posts file exists."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        with open(path, "w", encoding="utf-8") as fh:
            json.dump([], fh)


class PostStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def list(self) -> List[Dict]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                posts = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StoreError(f"cannot read {self.path}") from exc
        if not isinstance(posts, list):
            raise StoreError(f"{self.path} does not hold a list of posts")
        if not all(isinstance(post, dict) for post in posts):
            raise StoreError(f"{self.path} holds a post that is not an object")
        return posts

    def save(self, posts: List[Dict]) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(posts, fh, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise StoreError(f"cannot write {self.path}") from exc

    def next_id(self) -> int:
        # Last element + 1, not a max scan.
        posts = self.list()
        last = posts[-1].get("id") if posts else None
        try:
            return int(last or 0) + 1
        except (TypeError, ValueError) as exc:
            raise StoreError(f"last post has a non-numeric id: {last!r}") from exc

    def get(self, slug: str) -> Dict:
        for post in self.list():
            if post.get("slug") == slug:
                return post
        raise PostNotFound(slug)

    def append(self, post: Dict) -> Dict:
        posts = self.list()
        posts.append(post)
        self.save(posts)
        return post

    def _index_of(self, posts: List[Dict], post_id: int) -> int:
        for idx, post in enumerate(posts):
            if same_id(post.get("id"), post_id):
                return idx
        raise PostNotFound(post_id)

    def replace(self, post_id: int, new_post: Dict) -> Dict:
        posts = self.list()
        posts[self._index_of(posts, post_id)] = new_post
        self.save(posts)
        return new_post

    def remove(self, post_id: int) -> Dict:
        posts = self.list()
        removed = posts.pop(self._index_of(posts, post_id))
        self.save(posts)
        return removed

    def add_comment(self, slug: str, comment) -> Dict:
        posts = self.list()
        for post in posts:
            if post.get("slug") == slug:
                comments = post.setdefault("comments", [])
                if not isinstance(comments, list):
                    raise StoreError(f"post {slug!r} has malformed comments")
                comments.append(comment)
                self.save(posts)
                return post
        raise PostNotFound(slug)
