"""Tests for DeletionOperations."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from inkwell.content.exceptions import StatementError
from inkwell.content.models import Post, PostTag


@pytest.fixture
async def tagged_post(insertion, t0) -> int:
    """A post linked to two tags."""
    post_id = await insertion.insert_post(
        "Tagged", "tagged", "", "", False, False, True, "", "", t0, 7
    )
    for name in ("python", "sqlite"):
        tag_id = await insertion.insert_tag(name.title(), name, t0, 7)
        await insertion.insert_post_tag(post_id, tag_id)
    return post_id


async def _count_links(session_maker) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count()).select_from(PostTag))
        return result.scalar_one()


class TestDeletePostTags:
    """Test cases for delete_post_tags_for_post_id."""

    async def test_removes_only_that_posts_links(self, insertion, deletion, session_maker, tagged_post, t0):
        other_id = await insertion.insert_post("Other", "other", "", "", False, False, False, "", "", t0, 7)
        await insertion.insert_post_tag(other_id, 1)

        removed = await deletion.delete_post_tags_for_post_id(tagged_post)

        assert removed == 2
        assert await _count_links(session_maker) == 1

    async def test_post_without_tags_is_idempotent(self, insertion, deletion, session_maker, tagged_post, t0):
        untagged = await insertion.insert_post("Bare", "bare", "", "", False, False, False, "", "", t0, 7)

        first = await deletion.delete_post_tags_for_post_id(untagged)
        second = await deletion.delete_post_tags_for_post_id(untagged)

        assert first == 0
        assert second == 0
        assert await _count_links(session_maker) == 2


class TestDeletePost:
    """Test cases for delete_post_by_id and delete_post."""

    async def test_tags_then_post(self, deletion, read_row, session_maker, tagged_post):
        await deletion.delete_post_tags_for_post_id(tagged_post)
        removed = await deletion.delete_post_by_id(tagged_post)

        assert removed == 1
        assert await read_row(Post, id=tagged_post) is None
        assert await _count_links(session_maker) == 0

    async def test_post_with_links_cannot_be_deleted_first(self, deletion, read_row, session_maker, tagged_post):
        """Ordering is the caller's job; the foreign key rejects the wrong order."""
        with pytest.raises(StatementError):
            await deletion.delete_post_by_id(tagged_post)

        assert await read_row(Post, id=tagged_post) is not None
        assert await _count_links(session_maker) == 2

    async def test_unknown_post_removes_nothing(self, deletion):
        assert await deletion.delete_post_by_id(404) == 0

    async def test_delete_post_removes_both_atomically(self, deletion, read_row, session_maker, tagged_post):
        await deletion.delete_post(tagged_post)

        assert await read_row(Post, id=tagged_post) is None
        assert await _count_links(session_maker) == 0
