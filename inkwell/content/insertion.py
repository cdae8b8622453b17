"""Insert operations for the content store.

Each operation is one unit of work on the write gateway. Rows that carry an
external identifier get a fresh random UUID, independent of the surrogate
key the database assigns; the surrogate key is what callers get back.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Union
from uuid import uuid4

from inkwell.content.gateway import WriteGateway
from inkwell.content.models import (
    POST_STATUS_DRAFT,
    POST_STATUS_PUBLISHED,
    SETTING_ACTIVE_THEME,
    SETTING_COVER,
    SETTING_DESCRIPTION,
    SETTING_LOGO,
    SETTING_NAVIGATION,
    SETTING_POSTS_PER_PAGE,
    SETTING_TITLE,
    SETTING_TYPE_BLOG,
    SETTING_TYPE_THEME,
    Post,
    PostTag,
    RoleUser,
    Setting,
    Tag,
    User,
)
from inkwell.shared.config import BlogDefaults

logger = logging.getLogger(__name__)


def new_external_id() -> str:
    """Generate an external identifier in canonical UUID form."""
    return str(uuid4())


class InsertionOperations:
    """Creates posts, users, tags, settings and their associations."""

    def __init__(self, gateway: WriteGateway):
        self.gateway = gateway

    async def insert_post(
        self,
        title: str,
        slug: str,
        markdown: str,
        html: str,
        featured: bool,
        is_page: bool,
        published: bool,
        meta_description: str,
        image: str,
        created_at: datetime,
        created_by: int
    ) -> int:
        """Create a post.

        A post created as published is stamped as published by its creator at
        its creation time; a draft has no publication stamp.

        Args:
            title: Post title
            slug: Unique slug, computed by the caller
            markdown: Markdown source
            html: Rendered HTML
            featured: Whether the post is featured
            is_page: Whether the post is a static page
            published: Whether the post goes live immediately
            meta_description: Meta description
            image: Image reference
            created_at: Creation timestamp
            created_by: Id of the creating user

        Returns:
            int: Surrogate id of the new post

        Raises:
            StorageUnavailableError: If the transaction could not begin
            StatementError: If the insert failed; nothing was written
        """
        post = Post(
            uuid=new_external_id(),
            title=title,
            slug=slug,
            markdown=markdown,
            html=html,
            featured=featured,
            page=is_page,
            status=POST_STATUS_PUBLISHED if published else POST_STATUS_DRAFT,
            meta_description=meta_description,
            image=image,
            author_id=created_by,
            created_at=created_at,
            created_by=created_by,
            updated_at=created_at,
            updated_by=created_by,
            published_at=created_at if published else None,
            published_by=created_by if published else None,
        )
        async with self.gateway.transaction("insert_post") as session:
            session.add(post)
            await session.flush()
            post_id = post.id

        logger.debug(f"Inserted post {post_id} ({slug}), status {post.status}")
        return post_id

    async def insert_user(
        self,
        name: str,
        slug: str,
        password: str,
        email: str,
        image: str,
        cover: str,
        created_at: datetime,
        created_by: int
    ) -> int:
        """Create a user and return its surrogate id.

        ``password`` must already be hashed.
        """
        user = User(
            uuid=new_external_id(),
            name=name,
            slug=slug,
            password=password,
            email=email,
            image=image,
            cover=cover,
            created_at=created_at,
            created_by=created_by,
            updated_at=created_at,
            updated_by=created_by,
        )
        async with self.gateway.transaction("insert_user") as session:
            session.add(user)
            await session.flush()
            user_id = user.id

        logger.debug(f"Inserted user {user_id} ({slug})")
        return user_id

    async def insert_role_user(self, role_id: int, user_id: int) -> None:
        async with self.gateway.transaction("insert_role_user") as session:
            session.add(RoleUser(role_id=role_id, user_id=user_id))

    async def insert_tag(
        self,
        name: str,
        slug: str,
        created_at: datetime,
        created_by: int
    ) -> int:
        """Create a tag and return its surrogate id.

        The store does not deduplicate: an existing slug gets a second row
        with its own uuid. Slug uniqueness is the caller's concern.
        """
        tag = Tag(
            uuid=new_external_id(),
            name=name,
            slug=slug,
            created_at=created_at,
            created_by=created_by,
            updated_at=created_at,
            updated_by=created_by,
        )
        async with self.gateway.transaction("insert_tag") as session:
            session.add(tag)
            await session.flush()
            tag_id = tag.id

        logger.debug(f"Inserted tag {tag_id} ({slug})")
        return tag_id

    async def insert_post_tag(self, post_id: int, tag_id: int) -> None:
        async with self.gateway.transaction("insert_post_tag") as session:
            session.add(PostTag(post_id=post_id, tag_id=tag_id))

    async def insert_setting(
        self,
        key: str,
        value: Union[str, int],
        setting_type: str,
        created_at: datetime,
        created_by: int
    ) -> None:
        """Create one settings row.

        Integer values are stored in the same column as string values.
        """
        async with self.gateway.transaction("insert_setting") as session:
            session.add(_setting_row(key, value, setting_type, created_at, created_by))

    async def insert_default_settings(
        self,
        defaults: BlogDefaults,
        created_at: datetime,
        created_by: int
    ) -> None:
        """Seed every blog settings key in a single transaction."""
        entries = [
            (SETTING_TITLE, defaults.title, SETTING_TYPE_BLOG),
            (SETTING_DESCRIPTION, defaults.description, SETTING_TYPE_BLOG),
            (SETTING_LOGO, defaults.logo, SETTING_TYPE_BLOG),
            (SETTING_COVER, defaults.cover, SETTING_TYPE_BLOG),
            (SETTING_POSTS_PER_PAGE, defaults.posts_per_page, SETTING_TYPE_BLOG),
            (SETTING_ACTIVE_THEME, defaults.active_theme, SETTING_TYPE_THEME),
            (SETTING_NAVIGATION, defaults.navigation, SETTING_TYPE_BLOG),
        ]
        async with self.gateway.transaction("insert_default_settings") as session:
            session.add_all([
                _setting_row(key, value, setting_type, created_at, created_by)
                for key, value, setting_type in entries
            ])

        logger.info(f"Seeded {len(entries)} blog settings")


def _setting_row(
    key: str,
    value: Union[str, int],
    setting_type: str,
    created_at: datetime,
    created_by: int
) -> Setting:
    return Setting(
        uuid=new_external_id(),
        key=key,
        value=str(value),
        type=setting_type,
        created_at=created_at,
        created_by=created_by,
        updated_at=created_at,
        updated_by=created_by,
    )
