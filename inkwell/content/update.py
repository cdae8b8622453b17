"""Update operations for the content store.

Holds the publish transition rule: a post is stamped with its publication
time and publisher exactly once, on the write that first moves it into the
published state. Every other write uses a statement that does not mention
the publication columns at all, so a re-save can never overwrite the stamp.

Unpublishing does not clear the stamp, and republishing a post that was
published before keeps its original stamp.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Union

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.content.exceptions import ContentStoreError
from inkwell.content.exceptions import PrereadError
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
    Post,
    Setting,
    User,
)
from inkwell.content.retrieval import RetrievalOperations

logger = logging.getLogger(__name__)


class UpdateOperations:
    """Mutates existing posts, users and settings."""

    def __init__(self, gateway: WriteGateway, retrieval: RetrievalOperations):
        self.gateway = gateway
        self.retrieval = retrieval

    async def update_post(
        self,
        post_id: int,
        title: str,
        slug: str,
        markdown: str,
        html: str,
        featured: bool,
        is_page: bool,
        published: bool,
        meta_description: str,
        image: str,
        updated_at: datetime,
        updated_by: int
    ) -> None:
        """Rewrite a post, applying the publish transition rule.

        The post's stored state is read first, inside the write transaction
        and with the row locked. If the post is being published, is not
        published now and has never been published, ``published_at``/
        ``published_by`` are set to ``updated_at``/``updated_by``. Otherwise
        they are left untouched.

        Raises:
            StorageUnavailableError: If the transaction could not begin
            PrereadError: If the current post could not be read; nothing was written
            StatementError: If the update failed; rolled back
        """
        async with self.gateway.transaction("update_post") as session:
            try:
                current = await self.retrieval.get_post_by_id(session, post_id, for_update=True)
            except ContentStoreError as e:
                raise PrereadError(
                    f"Could not read post {post_id} before update: {e}", cause=e
                ) from e

            values = {
                "title": title,
                "slug": slug,
                "markdown": markdown,
                "html": html,
                "featured": featured,
                "page": is_page,
                "status": POST_STATUS_PUBLISHED if published else POST_STATUS_DRAFT,
                "meta_description": meta_description,
                "image": image,
                "updated_at": updated_at,
                "updated_by": updated_by,
            }
            first_publication = (
                published
                and not current.is_published
                and current.published_at is None
            )
            if first_publication:
                values["published_at"] = updated_at
                values["published_by"] = updated_by

            stmt = (
                update(Post)
                .where(Post.id == post_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await session.execute(stmt)

        if first_publication:
            logger.info(f"Post {post_id} published by user {updated_by}")

    async def update_settings(
        self,
        title: str,
        description: str,
        logo: str,
        cover: str,
        posts_per_page: int,
        active_theme: str,
        navigation: str,
        updated_at: datetime,
        updated_by: int
    ) -> None:
        """Update all seven blog settings keys as one transaction.

        If any keyed update fails, none of them is applied.

        Args:
            navigation: Navigation menu, already serialised as JSON
        """
        batch = [
            (SETTING_TITLE, title),
            (SETTING_DESCRIPTION, description),
            (SETTING_LOGO, logo),
            (SETTING_COVER, cover),
            (SETTING_POSTS_PER_PAGE, posts_per_page),
            (SETTING_ACTIVE_THEME, active_theme),
            (SETTING_NAVIGATION, navigation),
        ]
        async with self.gateway.transaction("update_settings") as session:
            for key, value in batch:
                await _update_setting(session, key, value, updated_at, updated_by)

        logger.debug(f"Updated blog settings by user {updated_by}")

    async def update_active_theme(
        self,
        active_theme: str,
        updated_at: datetime,
        updated_by: int
    ) -> None:
        async with self.gateway.transaction("update_active_theme") as session:
            await _update_setting(session, SETTING_ACTIVE_THEME, active_theme, updated_at, updated_by)

    async def update_user(
        self,
        user_id: int,
        name: str,
        slug: str,
        email: str,
        image: str,
        cover: str,
        bio: str,
        website: str,
        location: str,
        updated_at: datetime,
        updated_by: int
    ) -> None:
        """Rewrite a user's profile columns.

        The password is deliberately not part of this statement; use
        ``update_user_password``. No version check is made, so of two
        concurrent updates the later commit wins.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                name=name,
                slug=slug,
                email=email,
                image=image,
                cover=cover,
                bio=bio,
                website=website,
                location=location,
                updated_at=updated_at,
                updated_by=updated_by,
            )
            .execution_options(synchronize_session=False)
        )
        async with self.gateway.transaction("update_user") as session:
            await session.execute(stmt)

    async def update_user_password(
        self,
        user_id: int,
        password: str,
        updated_at: datetime,
        updated_by: int
    ) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(password=password, updated_at=updated_at, updated_by=updated_by)
            .execution_options(synchronize_session=False)
        )
        async with self.gateway.transaction("update_user_password") as session:
            await session.execute(stmt)

        logger.info(f"Password changed for user {user_id}")

    async def update_last_login(self, login_at: datetime, user_id: int) -> None:
        """Record a login. Logging in is not an edit: the audit pair stays."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(last_login=login_at)
            .execution_options(synchronize_session=False)
        )
        async with self.gateway.transaction("update_last_login") as session:
            await session.execute(stmt)


async def _update_setting(
    session: AsyncSession,
    key: str,
    value: Union[str, int],
    updated_at: datetime,
    updated_by: int
) -> None:
    stmt = (
        update(Setting)
        .where(Setting.key == key)
        .values(value=str(value), updated_at=updated_at, updated_by=updated_by)
        .execution_options(synchronize_session=False)
    )
    await session.execute(stmt)
