"""Tests for InsertionOperations.

Covers generated identity, audit stamping and the publish stamp taken at
creation time.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from inkwell.content.exceptions import StatementError
from inkwell.content.models import (
    BLOG_SETTING_KEYS,
    Post,
    PostTag,
    RoleUser,
    Setting,
    Tag,
    User,
)
from inkwell.shared.config import BlogDefaults


async def _insert_hello(insertion, t0, published=False, slug="hello"):
    return await insertion.insert_post(
        title="Hello",
        slug=slug,
        markdown="# Hi",
        html="<h1>Hi</h1>",
        featured=False,
        is_page=False,
        published=published,
        meta_description="",
        image="",
        created_at=t0,
        created_by=7,
    )


class TestInsertPost:
    """Test cases for insert_post."""

    async def test_draft_has_no_publication_stamp(self, insertion, read_row, t0):
        """A post created as draft has null published_at/published_by."""
        # Act
        post_id = await _insert_hello(insertion, t0, published=False)

        # Assert
        post = await read_row(Post, id=post_id)
        assert post.status == "draft"
        assert post.is_published is False
        assert post.published_at is None
        assert post.published_by is None

    async def test_published_post_stamped_with_creation(self, insertion, read_row, t0):
        """A post created as published is stamped with creator and creation time."""
        post_id = await _insert_hello(insertion, t0, published=True)

        post = await read_row(Post, id=post_id)
        assert post.status == "published"
        assert post.published_at == t0
        assert post.published_by == 7

    async def test_audit_fields_equal_at_insert(self, insertion, read_row, t0):
        post_id = await _insert_hello(insertion, t0)

        post = await read_row(Post, id=post_id)
        assert post.created_at == t0
        assert post.updated_at == t0
        assert post.created_by == 7
        assert post.updated_by == 7
        assert post.author_id == 7

    async def test_fields_persisted(self, insertion, read_row, t0):
        post_id = await insertion.insert_post(
            title="About",
            slug="about",
            markdown="About me",
            html="<p>About me</p>",
            featured=True,
            is_page=True,
            published=False,
            meta_description="Who I am",
            image="/content/images/me.png",
            created_at=t0,
            created_by=3,
        )

        post = await read_row(Post, id=post_id)
        assert post.title == "About"
        assert post.slug == "about"
        assert post.markdown == "About me"
        assert post.html == "<p>About me</p>"
        assert post.featured is True
        assert post.page is True
        assert post.meta_description == "Who I am"
        assert post.image == "/content/images/me.png"

    async def test_returns_surrogate_id_and_generates_uuid(self, insertion, read_row, t0):
        first_id = await _insert_hello(insertion, t0)
        second_id = await _insert_hello(insertion, t0, slug="hello-2")

        assert first_id == 1
        assert second_id == 2
        first = await read_row(Post, id=first_id)
        second = await read_row(Post, id=second_id)
        assert str(uuid.UUID(first.uuid)) == first.uuid
        assert first.uuid != second.uuid

    async def test_duplicate_slug_rolls_back(self, insertion, read_row, t0):
        """The unique slug constraint surfaces as StatementError, leaving no row."""
        await _insert_hello(insertion, t0)

        with pytest.raises(StatementError) as exc_info:
            await _insert_hello(insertion, t0 + timedelta(minutes=1))

        assert exc_info.value.cause is not None
        assert exc_info.value.has_dirty_rollback is False
        assert await read_row(Post, id=2) is None


class TestInsertUser:
    """Test cases for insert_user and insert_role_user."""

    async def test_insert_user(self, insertion, read_row, t0):
        user_id = await insertion.insert_user(
            name="Ada",
            slug="ada",
            password="hash",
            email="ada@example.com",
            image="img",
            cover="cov",
            created_at=t0,
            created_by=1,
        )

        user = await read_row(User, id=user_id)
        assert user.name == "Ada"
        assert user.password == "hash"
        assert user.created_at == user.updated_at == t0
        assert user.last_login is None
        assert user.bio is None
        uuid.UUID(user.uuid)

    async def test_insert_role_user(self, insertion, read_row, owner_id):
        await insertion.insert_role_user(1, owner_id)

        role_user = await read_row(RoleUser, user_id=owner_id)
        assert role_user.role_id == 1

    async def test_role_for_unknown_user_fails(self, insertion, read_row):
        with pytest.raises(StatementError):
            await insertion.insert_role_user(1, 999)

        assert await read_row(RoleUser, user_id=999) is None


class TestInsertTag:
    """Test cases for insert_tag and insert_post_tag."""

    async def test_identical_input_gets_distinct_uuids(self, session_maker, insertion, t0):
        """The store does not deduplicate: identity is generated, not derived."""
        first = await insertion.insert_tag("Python", "python", t0, 7)
        second = await insertion.insert_tag("Python", "python", t0, 7)

        async with session_maker() as session:
            result = await session.execute(select(Tag).where(Tag.slug == "python"))
            tags = result.scalars().all()
        assert first != second
        assert len(tags) == 2
        assert tags[0].uuid != tags[1].uuid
        assert all(uuid.UUID(t.uuid) for t in tags)

    async def test_insert_post_tag(self, insertion, read_row, t0):
        post_id = await _insert_hello(insertion, t0)
        tag_id = await insertion.insert_tag("Go", "go", t0, 7)

        await insertion.insert_post_tag(post_id, tag_id)

        link = await read_row(PostTag, post_id=post_id)
        assert link.tag_id == tag_id


class TestInsertSetting:
    """Test cases for insert_setting and insert_default_settings."""

    async def test_string_and_integer_values_share_column(self, insertion, read_row, t0):
        await insertion.insert_setting("title", "My Blog", "blog", t0, 7)
        await insertion.insert_setting("postsPerPage", 10, "blog", t0, 7)

        title = await read_row(Setting, key="title")
        per_page = await read_row(Setting, key="postsPerPage")
        assert title.value == "My Blog"
        assert per_page.value == "10"
        assert per_page.int_value == 10
        assert title.type == "blog"
        assert title.uuid != per_page.uuid

    async def test_default_settings_seed_every_key(self, insertion, read_row, t0):
        defaults = BlogDefaults(title="Notes", posts_per_page=3)

        await insertion.insert_default_settings(defaults, t0, 7)

        for key in BLOG_SETTING_KEYS:
            assert await read_row(Setting, key=key) is not None
        assert (await read_row(Setting, key="title")).value == "Notes"
        assert (await read_row(Setting, key="postsPerPage")).int_value == 3
        assert (await read_row(Setting, key="activeTheme")).type == "theme"

    async def test_default_settings_are_all_or_nothing(self, insertion, read_row, t0):
        """An existing key makes the whole seed fail without adding the others."""
        await insertion.insert_setting("navigation", "[]", "blog", t0, 7)

        with pytest.raises(StatementError):
            await insertion.insert_default_settings(BlogDefaults(), t0, 7)

        assert await read_row(Setting, key="title") is None
