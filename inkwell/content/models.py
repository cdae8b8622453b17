"""Entity model for the content store.

Table rows (Post, User, RoleUser, Tag, PostTag, Setting) are SQLAlchemy
declarative models; they carry no behaviour beyond derived read-only views.
Blog is a pydantic shape assembled from the settings rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from sqlalchemy import Boolean
from sqlalchemy import ForeignKey
from sqlalchemy import Index
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy import Text
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import mapped_column

from inkwell.shared.database import Base
from inkwell.shared.database import UTCDateTime

POST_STATUS_DRAFT = "draft"
POST_STATUS_PUBLISHED = "published"

OWNER_ROLE_ID = 1

# Settings keys written by the blog settings batch, in statement order
SETTING_TITLE = "title"
SETTING_DESCRIPTION = "description"
SETTING_LOGO = "logo"
SETTING_COVER = "cover"
SETTING_POSTS_PER_PAGE = "postsPerPage"
SETTING_ACTIVE_THEME = "activeTheme"
SETTING_NAVIGATION = "navigation"

BLOG_SETTING_KEYS = (
    SETTING_TITLE,
    SETTING_DESCRIPTION,
    SETTING_LOGO,
    SETTING_COVER,
    SETTING_POSTS_PER_PAGE,
    SETTING_ACTIVE_THEME,
    SETTING_NAVIGATION,
)

SETTING_TYPE_BLOG = "blog"
SETTING_TYPE_THEME = "theme"


class AuditMixin:
    """Caller-supplied creation and modification stamps."""

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        doc="Timestamp when the record was created"
    )
    created_by: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="User id that created the record"
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        doc="Timestamp of the last edit"
    )
    updated_by: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="User id that made the last edit"
    )


class Post(AuditMixin, Base):
    """A blog post or static page.

    ``published_at``/``published_by`` are stamped once, when the post first
    becomes published, and are left alone by every later write.
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        doc="Externally visible identifier"
    )
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    slug: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    markdown: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    page: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        default=POST_STATUS_DRAFT,
        doc="draft or published"
    )
    meta_description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    author_id: Mapped[int] = mapped_column(Integer, nullable=False)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True,
        doc="Time of the first publication"
    )
    published_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="User id that first published the post"
    )

    __table_args__ = (
        Index("ix_posts_status_published_at", "status", "published_at"),
    )

    @property
    def is_published(self) -> bool:
        return self.status == POST_STATUS_PUBLISHED

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, slug={self.slug!r}, status={self.status!r})>"


class User(AuditMixin, Base):
    """The blog author account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    slug: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        doc="Password hash produced by the authentication layer"
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True,
        doc="Null until the user first logs in"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, slug={self.slug!r})>"


class RoleUser(Base):
    """Assignment of a role to a user."""

    __tablename__ = "roles_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False
    )


class Tag(AuditMixin, Base):
    """A tag that posts can be filed under.

    ``slug`` is indexed but not unique: avoiding collisions is up to the slug
    generator, and lookups by slug return the oldest match.
    """

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    slug: Mapped[str] = mapped_column(String(150), nullable=False)

    __table_args__ = (
        Index("ix_tags_slug", "slug"),
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, slug={self.slug!r})>"


class PostTag(Base):
    """Link between a post and one of its tags."""

    __tablename__ = "posts_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("posts.id"),
        nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tags.id"),
        nullable=False
    )

    __table_args__ = (
        Index("ix_posts_tags_post_id", "post_id"),
    )


class Setting(AuditMixin, Base):
    """One key of the site-wide configuration.

    Integer settings share the text ``value`` column with string settings;
    ``type`` is the category the key belongs to (``blog``, ``theme``).
    """

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    key: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(150), nullable=False, default=SETTING_TYPE_BLOG)

    @property
    def int_value(self) -> int:
        """The value read as an integer setting."""
        return int(self.value)

    def __repr__(self) -> str:
        return f"<Setting(key={self.key!r}, value={self.value!r})>"


class NavigationItem(BaseModel):
    """A single entry of the blog navigation menu."""

    model_config = ConfigDict(str_strip_whitespace=True)

    label: str = Field(description="Text shown for the link")
    url: str = Field(description="Link target")


class Blog(BaseModel):
    """Blog-wide configuration as one value, assembled from the settings rows."""

    model_config = ConfigDict(validate_assignment=True)

    title: str = ""
    description: str = ""
    logo: str = ""
    cover: str = ""
    posts_per_page: int = Field(default=5, ge=1)
    active_theme: str = ""
    navigation: List[NavigationItem] = Field(default_factory=list)

    def navigation_json(self) -> str:
        """Serialise the navigation menu the way it is stored."""
        return NAVIGATION_ADAPTER.dump_json(self.navigation).decode("utf-8")


NAVIGATION_ADAPTER = TypeAdapter(List[NavigationItem])


class TagDraft(BaseModel):
    """A tag as supplied by the caller: a display name and its slug."""

    name: str
    slug: str


class PostDraft(BaseModel):
    """Post fields as produced by the admin layer, ready to be stored.

    ``html`` is already rendered and ``slug`` already unique.
    """

    title: str
    slug: str
    markdown: str = ""
    html: str = ""
    featured: bool = False
    is_page: bool = False
    published: bool = False
    meta_description: str = ""
    image: str = ""
