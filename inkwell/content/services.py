"""Content service: the admin-facing save, update and delete flows.

Composes the insertion, update, deletion and retrieval components the way
the admin handlers use them: a post is saved together with its tags, an
edited post gets its tag set replaced, and blog settings are written as one
batch. Timestamps come from the injected DateProvider.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker

from inkwell.content.deletion import DeletionOperations
from inkwell.content.exceptions import NotFoundError
from inkwell.content.gateway import WriteGateway
from inkwell.content.insertion import InsertionOperations
from inkwell.content.models import Blog, Post, PostDraft, PostTag, TagDraft
from inkwell.content.retrieval import RetrievalOperations
from inkwell.content.update import UpdateOperations
from inkwell.shared.config import BlogDefaults
from inkwell.shared.date_provider import DateProvider, UTCDateProvider

logger = logging.getLogger(__name__)


class ContentService:
    """Entry point used by the admin layer for content writes.

    Built once by the process wiring from a session maker; each component
    gets the same write gateway.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        date_provider: Optional[DateProvider] = None
    ):
        self.session_maker = session_maker
        self.date_provider = date_provider or UTCDateProvider()
        self.gateway = WriteGateway(session_maker)
        self.retrieval = RetrievalOperations()
        self.insertion = InsertionOperations(self.gateway)
        self.update = UpdateOperations(self.gateway, self.retrieval)
        self.deletion = DeletionOperations(self.gateway)

    async def get_post(self, post_id: int) -> Post:
        async with self.session_maker() as session:
            return await self.retrieval.get_post_by_id(session, post_id)

    async def get_blog(self) -> Blog:
        async with self.session_maker() as session:
            return await self.retrieval.get_blog(session)

    async def save_post(self, draft: PostDraft, tags: Sequence[TagDraft], author_id: int) -> int:
        """Store a new post and link it to its tags.

        Tags that already exist (by slug) are reused, others are created.

        Returns:
            int: Id of the new post
        """
        now = self.date_provider.utcnow()
        tag_ids = await self._resolve_tags(tags, author_id)

        post_id = await self.insertion.insert_post(
            title=draft.title,
            slug=draft.slug,
            markdown=draft.markdown,
            html=draft.html,
            featured=draft.featured,
            is_page=draft.is_page,
            published=draft.published,
            meta_description=draft.meta_description,
            image=draft.image,
            created_at=now,
            created_by=author_id,
        )
        await self._link_tags(post_id, tag_ids)

        logger.info(f"Saved post {post_id} with {len(tag_ids)} tags")
        return post_id

    async def update_post(
        self,
        post_id: int,
        draft: PostDraft,
        tags: Sequence[TagDraft],
        editor_id: int
    ) -> None:
        """Rewrite a post and replace its tag set."""
        now = self.date_provider.utcnow()
        tag_ids = await self._resolve_tags(tags, editor_id)

        await self.update.update_post(
            post_id,
            title=draft.title,
            slug=draft.slug,
            markdown=draft.markdown,
            html=draft.html,
            featured=draft.featured,
            is_page=draft.is_page,
            published=draft.published,
            meta_description=draft.meta_description,
            image=draft.image,
            updated_at=now,
            updated_by=editor_id,
        )
        await self._link_tags(post_id, tag_ids, replace=True)

    async def delete_post(self, post_id: int) -> None:
        await self.deletion.delete_post(post_id)

    async def save_user(
        self,
        name: str,
        slug: str,
        password_hash: str,
        email: str,
        image: str,
        cover: str,
        role_id: int,
        created_by: int
    ) -> int:
        """Create a user and assign it a role.

        Returns:
            int: Id of the new user
        """
        now = self.date_provider.utcnow()
        user_id = await self.insertion.insert_user(
            name, slug, password_hash, email, image, cover, now, created_by
        )
        await self.insertion.insert_role_user(role_id, user_id)
        return user_id

    async def users_count(self) -> int:
        async with self.session_maker() as session:
            return await self.retrieval.get_users_count(session)

    async def record_login(self, user_id: int) -> None:
        await self.update.update_last_login(self.date_provider.utcnow(), user_id)

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
        editor_id: int,
        password_hash: Optional[str] = None
    ) -> None:
        """Save the user settings form.

        The password is only rewritten when a new hash is given; both writes
        carry the same timestamp.
        """
        now = self.date_provider.utcnow()
        await self.update.update_user(
            user_id,
            name=name,
            slug=slug,
            email=email,
            image=image,
            cover=cover,
            bio=bio,
            website=website,
            location=location,
            updated_at=now,
            updated_by=editor_id,
        )
        if password_hash:
            await self.update.update_user_password(user_id, password_hash, now, editor_id)

    async def change_password(self, user_id: int, password_hash: str, editor_id: int) -> None:
        await self.update.update_user_password(
            user_id, password_hash, self.date_provider.utcnow(), editor_id
        )

    async def seed_settings(self, defaults: BlogDefaults, created_by: int) -> None:
        await self.insertion.insert_default_settings(
            defaults, self.date_provider.utcnow(), created_by
        )

    async def update_blog(self, blog: Blog, editor_id: int) -> None:
        """Write the whole blog configuration as one settings batch."""
        await self.update.update_settings(
            title=blog.title,
            description=blog.description,
            logo=blog.logo,
            cover=blog.cover,
            posts_per_page=blog.posts_per_page,
            active_theme=blog.active_theme,
            navigation=blog.navigation_json(),
            updated_at=self.date_provider.utcnow(),
            updated_by=editor_id,
        )

    async def set_active_theme(self, active_theme: str, editor_id: int) -> None:
        await self.update.update_active_theme(
            active_theme, self.date_provider.utcnow(), editor_id
        )

    async def _resolve_tags(self, tags: Sequence[TagDraft], user_id: int) -> List[int]:
        """Map tag drafts to tag ids, creating tags that don't exist yet."""
        tag_ids: List[int] = []
        for draft in tags:
            try:
                async with self.session_maker() as session:
                    tag = await self.retrieval.get_tag_by_slug(session, draft.slug)
                tag_id = tag.id
            except NotFoundError:
                tag_id = await self.insertion.insert_tag(
                    draft.name, draft.slug, self.date_provider.utcnow(), user_id
                )
            if tag_id not in tag_ids:
                tag_ids.append(tag_id)
        return tag_ids

    async def _link_tags(self, post_id: int, tag_ids: List[int], replace: bool = False) -> None:
        """Link a post to its tags in one unit, dropping old links first if asked."""
        async with self.gateway.transaction("link_post_tags") as session:
            if replace:
                await session.execute(
                    delete(PostTag)
                    .where(PostTag.post_id == post_id)
                    .execution_options(synchronize_session=False)
                )
            session.add_all([PostTag(post_id=post_id, tag_id=tag_id) for tag_id in tag_ids])
