"""
In-memory cache of posts and comments, kept in sync with the API.

The server is the source of truth. Writes go to the server first and the
cache only changes after the server confirms; most writes are then
reconciled by re-fetching, so the cache never holds an optimistic guess.
Failed writes raise to the caller and leave the cache untouched.
"""
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from api_client.client import ApiClient
from api_client.errors import ApiError
from schemas.comment import Comment, CommentCreate
from schemas.post import Post, PostCreate, PostUpdate
from services.exceptions import validate_form

logger = logging.getLogger(__name__)

CacheListener = Callable[["ContentCache"], None]
ItemT = TypeVar("ItemT", Post, Comment)

def _parse_list(model: type[ItemT], data: Any, what: str) -> list[ItemT]:
    """Parse a list response item by item, dropping entries that don't validate."""
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Unexpected %s response shape: %s", what, type(data).__name__)
        raise ApiError("Invalid response from server")
    items: list[ItemT] = []
    for raw in data:
        try:
            items.append(model.model_validate(raw))
        except PydanticValidationError as e:
            logger.warning("Skipping invalid %s item: %s", what, e)
    return items


class ContentCache:
    """
    Posts and comments for the blog, with CRUD that round-trips the API.

    Comments are held in one flat collection across all posts. Lookups
    (`get_post_by_id`, `get_comments_by_post_id`) read the cache only and
    never touch the network.
    """

    def __init__(self, api: ApiClient) -> None:
        self._api = api
        self._posts: list[Post] = []
        self._comments: list[Comment] = []
        self._is_loading = False
        self._listeners: list[CacheListener] = []

    @property
    def posts(self) -> list[Post]:
        """Cached posts in server order."""
        return list(self._posts)

    @property
    def comments(self) -> list[Comment]:
        """All cached comments, for every post."""
        return list(self._comments)

    @property
    def is_loading(self) -> bool:
        """True while the post list is being fetched."""
        return self._is_loading

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """
        Call `listener` after every change to the cached data.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # Lookups

    def get_post_by_id(self, post_id: str) -> Post | None:
        """Find a cached post."""
        return next((p for p in self._posts if p.id == post_id), None)

    def get_comments_by_post_id(self, post_id: str) -> list[Comment]:
        """Cached comments belonging to a post."""
        return [c for c in self._comments if c.post_id == post_id]

    # Synchronization

    async def refresh_posts(self) -> list[Post]:
        """
        Replace the cached posts with the server's list.

        Posts missing from the response disappear from the cache, including
        ones created locally since the last refresh.
        """
        self._is_loading = True
        self._notify()
        try:
            data = await self._api.get("/posts")
            self._posts = _parse_list(Post, data, "posts")
        finally:
            self._is_loading = False
            self._notify()
        logger.debug("Refreshed posts count=%s", len(self._posts))
        return self.posts

    async def refresh_comments(self, post_id: str) -> list[Comment]:
        """Replace the cached comments of one post. Other posts' comments are kept."""
        data = await self._api.get(f"/posts/{post_id}/comments")
        fresh = _parse_list(Comment, data, "comments")
        self._comments = [c for c in self._comments if c.post_id != post_id] + fresh
        self._notify()
        logger.debug("Refreshed comments post_id=%s count=%s", post_id, len(fresh))
        return fresh

    async def fetch_post_by_id(self, post_id: str) -> Post | None:
        """
        Fetch one post and upsert it into the cache.

        Returns:
            The post, or None if it doesn't exist or couldn't be fetched. A
            missing post is a normal outcome and leaves the cache unchanged.
        """
        try:
            data = await self._api.get(f"/posts/{post_id}")
            post = Post.model_validate(data)
        except ApiError as e:
            logger.warning("Could not fetch post_id=%s: %s", post_id, e.message)
            return None
        except PydanticValidationError as e:
            logger.warning("Unexpected post response shape post_id=%s: %s", post_id, e)
            return None

        for i, cached in enumerate(self._posts):
            if cached.id == post.id:
                self._posts[i] = post
                break
        else:
            self._posts.append(post)
        self._notify()
        return post

    # Posts

    async def create_post(
        self,
        title: str,
        content: str,
        excerpt: str,
        category: str | None = None,
    ) -> None:
        """
        Create a post, then refresh the post list.

        Raises:
            ValidationError: If title or content is blank.
            ApiError: If the server rejects the request.
        """
        payload = validate_form(
            PostCreate, title=title, content=content, excerpt=excerpt, category=category,
        )
        await self._api.post("/posts", payload.model_dump(exclude_none=True), require_auth=True)
        await self.refresh_posts()

    async def update_post(
        self,
        post_id: str,
        title: str | None = None,
        content: str | None = None,
        excerpt: str | None = None,
        category: str | None = None,
    ) -> None:
        """
        Update a post, then refresh the post list.

        Only the fields given are sent.

        Raises:
            ValidationError: If title or content is given but blank.
            ApiError: If the server rejects the request.
        """
        payload = validate_form(
            PostUpdate, title=title, content=content, excerpt=excerpt, category=category,
        )
        await self._api.put(
            f"/posts/{post_id}",
            payload.model_dump(exclude_none=True),
            require_auth=True,
        )
        await self.refresh_posts()

    async def delete_post(self, post_id: str) -> None:
        """
        Delete a post, refresh the post list, and drop the post's comments.

        Raises:
            ApiError: If the server rejects the request.
        """
        await self._api.delete(f"/posts/{post_id}", require_auth=True)
        self._comments = [c for c in self._comments if c.post_id != post_id]
        self._notify()
        await self.refresh_posts()

    # Comments

    async def create_comment(self, post_id: str, content: str) -> None:
        """
        Add a comment to a post, then refresh that post's comments.

        Raises:
            ValidationError: If content is blank.
            ApiError: If the server rejects the request.
        """
        payload = validate_form(CommentCreate, content=content)
        await self._api.post(
            f"/posts/{post_id}/comments", payload.model_dump(), require_auth=True,
        )
        await self.refresh_comments(post_id)

    async def update_comment(self, comment_id: str, content: str) -> None:
        """
        Edit a comment, then refresh the comments of the post it belongs to.

        Raises:
            ValidationError: If content is blank.
            ApiError: If the server rejects the request.
        """
        payload = validate_form(CommentCreate, content=content)
        data = await self._api.put(
            f"/comments/{comment_id}", payload.model_dump(), require_auth=True,
        )
        post_id = self._post_id_of_comment(comment_id, data)
        if post_id is None:
            logger.warning("Edited comment_id=%s has no known post; not refreshing", comment_id)
            return
        await self.refresh_comments(post_id)

    async def delete_comment(self, comment_id: str) -> None:
        """
        Delete a comment and drop it from the cache without re-fetching.

        Raises:
            ApiError: If the server rejects the request.
        """
        await self._api.delete(f"/comments/{comment_id}", require_auth=True)
        self._comments = [c for c in self._comments if c.id != comment_id]
        self._notify()

    def _post_id_of_comment(self, comment_id: str, response: Any) -> str | None:
        """Post a comment belongs to, from the cache or else the update response."""
        cached = next((c for c in self._comments if c.id == comment_id), None)
        if cached is not None:
            return cached.post_id
        if isinstance(response, dict):
            post_id = response.get("post_id", response.get("postId"))
            if post_id is not None:
                return str(post_id)
        return None
