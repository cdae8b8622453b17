"""Read operations for the content store.

Only the parts the write path and the content service rely on live here:
the current version of a post (consulted by the publish transition rule),
tag and user lookups, and the blog settings view.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.content.exceptions import ContentStoreError
from inkwell.content.exceptions import NotFoundError
from inkwell.content.models import (
    BLOG_SETTING_KEYS,
    NAVIGATION_ADAPTER,
    SETTING_ACTIVE_THEME,
    SETTING_COVER,
    SETTING_DESCRIPTION,
    SETTING_LOGO,
    SETTING_NAVIGATION,
    SETTING_POSTS_PER_PAGE,
    SETTING_TITLE,
    Blog,
    Post,
    PostTag,
    Setting,
    Tag,
    User,
)

logger = logging.getLogger(__name__)


class RetrievalOperations:
    """Database reads used around the write path."""

    async def get_post_by_id(
        self,
        session: AsyncSession,
        post_id: int,
        for_update: bool = False
    ) -> Post:
        """Get post by surrogate id.

        Args:
            session: Database session
            post_id: Post id
            for_update: Lock the row for the rest of the transaction

        Returns:
            Post: Post record

        Raises:
            NotFoundError: If post doesn't exist
            ContentStoreError: If query fails
        """
        try:
            stmt = select(Post).where(Post.id == post_id)
            if for_update:
                stmt = stmt.with_for_update()
            result = await session.execute(stmt)
            post = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to get post: {e}", cause=e) from e

        if post is None:
            raise NotFoundError(f"Post not found: {post_id}")
        return post

    async def get_tag_by_slug(self, session: AsyncSession, slug: str) -> Tag:
        """Get tag by slug; the oldest tag wins if several share it.

        Raises:
            NotFoundError: If no tag has that slug
        """
        try:
            stmt = select(Tag).where(Tag.slug == slug).order_by(Tag.id).limit(1)
            result = await session.execute(stmt)
            tag = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to get tag: {e}", cause=e) from e

        if tag is None:
            raise NotFoundError(f"Tag not found: {slug}")
        return tag

    async def get_tags_for_post(self, session: AsyncSession, post_id: int) -> List[Tag]:
        try:
            stmt = (
                select(Tag)
                .join(PostTag, PostTag.tag_id == Tag.id)
                .where(PostTag.post_id == post_id)
                .order_by(Tag.name)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to get tags for post: {e}", cause=e) from e

    async def get_user_by_id(self, session: AsyncSession, user_id: int) -> User:
        """Get user by surrogate id.

        Raises:
            NotFoundError: If user doesn't exist
        """
        try:
            result = await session.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to get user: {e}", cause=e) from e

        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    async def get_users_count(self, session: AsyncSession) -> int:
        try:
            result = await session.execute(select(func.count()).select_from(User))
            return result.scalar_one()
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to count users: {e}", cause=e) from e

    async def get_setting(self, session: AsyncSession, key: str) -> Setting:
        """Get a single settings row by key.

        Raises:
            NotFoundError: If the key was never inserted
        """
        try:
            result = await session.execute(select(Setting).where(Setting.key == key))
            setting = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to get setting: {e}", cause=e) from e

        if setting is None:
            raise NotFoundError(f"Setting not found: {key}")
        return setting

    async def get_blog(self, session: AsyncSession) -> Blog:
        """Assemble the blog configuration from the settings rows.

        Raises:
            NotFoundError: If any blog key is missing
            ContentStoreError: If a stored value cannot be interpreted
        """
        try:
            result = await session.execute(
                select(Setting).where(Setting.key.in_(BLOG_SETTING_KEYS))
            )
            rows: Dict[str, Setting] = {s.key: s for s in result.scalars().all()}
        except SQLAlchemyError as e:
            raise ContentStoreError(f"Failed to get blog settings: {e}", cause=e) from e

        missing = [key for key in BLOG_SETTING_KEYS if key not in rows]
        if missing:
            raise NotFoundError(f"Blog settings missing: {', '.join(missing)}")

        try:
            return Blog(
                title=rows[SETTING_TITLE].value or "",
                description=rows[SETTING_DESCRIPTION].value or "",
                logo=rows[SETTING_LOGO].value or "",
                cover=rows[SETTING_COVER].value or "",
                posts_per_page=rows[SETTING_POSTS_PER_PAGE].int_value,
                active_theme=rows[SETTING_ACTIVE_THEME].value or "",
                navigation=NAVIGATION_ADAPTER.validate_json(rows[SETTING_NAVIGATION].value or "[]"),
            )
        except (ValueError, ValidationError) as e:
            logger.error(f"Stored blog settings are malformed: {e}")
            raise ContentStoreError(f"Malformed blog settings: {e}", cause=e) from e
