from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Dict, List, Optional

import config
import store
from accounts import ROLE_ADMIN, now_iso
from errors import Forbidden, NotFound

logger = logging.getLogger(__name__)

UNTITLED = "(untitled)"
EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_date(date_str: Optional[str]) -> datetime:
    if not date_str:
        return EPOCH
    if date_str.endswith("Z"):
        date_str = date_str[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(date_str)
    except ValueError:
        return EPOCH
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_date(date_str: Optional[str]) -> str:
    dt = parse_date(date_str)
    if dt == EPOCH:
        return ""
    return dt.strftime("%b %d, %Y")


def load_posts() -> List[Dict]:
    return store.read_collection(config.POSTS_FILE)


def save_posts(posts: List[Dict]) -> None:
    store.write_collection(config.POSTS_FILE, posts)


def list_posts() -> List[Dict]:
    """All posts, newest first.

    Posts sharing a timestamp keep the later-appended one first.
    """
    posts = load_posts()
    return sorted(reversed(posts), key=lambda p: parse_date(p.get("createdAt")), reverse=True)


def find_post(posts: List[Dict], post_id: str) -> Dict:
    for post in posts:
        if post.get("id") == post_id:
            return post
    raise NotFound()


def get_post(post_id: str) -> Dict:
    return find_post(load_posts(), post_id)


def new_id(posts: List[Dict]) -> str:
    taken = {p.get("id") for p in posts}
    while True:
        candidate = secrets.token_urlsafe(8)
        if candidate not in taken:
            return candidate


def create_post(title: Optional[str], content: Optional[str], author: Dict) -> Dict:
    posts = load_posts()
    post = {
        "id": new_id(posts),
        "title": (title or "").strip() or UNTITLED,
        "content": (content or "").strip(),
        "authorEmail": author["email"],
        "authorName": author["name"],
        "createdAt": now_iso(),
        "likes": [],
        "dislikes": [],
    }
    posts.append(post)
    save_posts(posts)
    logger.info("Post %s created by %s", post["id"], author["email"])
    return post


def can_delete(post: Dict, requester: Dict) -> bool:
    return requester.get("role") == ROLE_ADMIN or post.get("authorEmail") == requester.get("email")


def delete_post(post_id: str, requester: Dict) -> Dict:
    posts = load_posts()
    post = find_post(posts, post_id)
    if not can_delete(post, requester):
        raise Forbidden("You can only delete your own posts")
    posts.remove(post)
    save_posts(posts)
    logger.info("Post %s deleted by %s", post_id, requester["email"])
    return post


def toggle_reaction(post_id: str, requester: Dict, target: str, opposite: str) -> Dict:
    """Drop the opposite reaction, then flip membership in ``target``."""
    posts = load_posts()
    post = find_post(posts, post_id)
    email = requester["email"]

    post[opposite] = [e for e in post.get(opposite) or [] if e != email]
    current = post.get(target) or []
    if email in current:
        post[target] = [e for e in current if e != email]
    else:
        post[target] = current + [email]

    save_posts(posts)
    return post


def like(post_id: str, requester: Dict) -> Dict:
    return toggle_reaction(post_id, requester, "likes", "dislikes")


def dislike(post_id: str, requester: Dict) -> Dict:
    return toggle_reaction(post_id, requester, "dislikes", "likes")
