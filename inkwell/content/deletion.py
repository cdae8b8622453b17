"""Delete operations for the content store.

Posts are the only entity that is ever hard-deleted. The posts table has no
cascade onto ``posts_tags``: a post's tag associations must be removed before
the post itself, either by calling the two single-statement operations in
that order or by using ``delete_post``, which runs both in one transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.content.gateway import WriteGateway
from inkwell.content.models import Post, PostTag

logger = logging.getLogger(__name__)


class DeletionOperations:
    """Removes posts and their tag associations."""

    def __init__(self, gateway: WriteGateway):
        self.gateway = gateway

    async def delete_post_tags_for_post_id(self, post_id: int) -> int:
        """Remove every tag association of a post.

        A post without tags is not an error.

        Returns:
            int: Number of associations removed
        """
        async with self.gateway.transaction("delete_post_tags") as session:
            removed = await _delete_post_tags(session, post_id)
        return removed

    async def delete_post_by_id(self, post_id: int) -> int:
        """Remove the post row only.

        Returns:
            int: Number of posts removed (0 if the id was unknown)

        Raises:
            StatementError: If the post still has tag associations
        """
        async with self.gateway.transaction("delete_post") as session:
            removed = await _delete_post(session, post_id)
        return removed

    async def delete_post(self, post_id: int) -> None:
        """Remove a post together with its tag associations, atomically."""
        async with self.gateway.transaction("delete_post_with_tags") as session:
            tags_removed = await _delete_post_tags(session, post_id)
            posts_removed = await _delete_post(session, post_id)

        logger.info(f"Deleted post {post_id} ({posts_removed} row, {tags_removed} tag links)")


async def _delete_post_tags(session: AsyncSession, post_id: int) -> int:
    stmt = (
        delete(PostTag)
        .where(PostTag.post_id == post_id)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount


async def _delete_post(session: AsyncSession, post_id: int) -> int:
    stmt = (
        delete(Post)
        .where(Post.id == post_id)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount
