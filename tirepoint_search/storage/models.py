"""Database models for TirePoint Search."""

from datetime import datetime
from typing import Any, List, Union

from pydantic import BaseModel
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# ============================================================================
# Pydantic Models (for data transfer)
# ============================================================================


class SelectOption(BaseModel):
    """One entry of a make/model/year dropdown."""

    value: str  # term slug
    label: str  # term name


class TireResult(BaseModel):
    """A tire product as shown on a result card."""

    id: int
    title: str
    size: str = ""
    type: str = ""
    price: str = ""
    image: str = ""
    availability: str = ""
    url: str = ""


class SearchLogRecord(BaseModel):
    """One entry of the search log option."""

    make: str = ""
    model: str = ""
    year: str = ""
    timestamp: int = 0
    user_ip: str = ""


class TaxClause(BaseModel):
    """Match posts carrying any of ``terms`` in ``taxonomy``."""

    taxonomy: str
    terms: List[str]
    field: str = "slug"  # slug, name or id


class MetaClause(BaseModel):
    """Match posts with a meta row for ``key`` equal to (or in) ``value``."""

    key: str
    value: Union[str, int, List[Any]]
    compare: str = "="  # = or IN


# ============================================================================
# SQLAlchemy Models (for database)
# ============================================================================


post_terms = Table(
    "post_terms",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id"), primary_key=True),
    Column("term_id", Integer, ForeignKey("terms.id"), primary_key=True),
)


class Term(Base):
    """Taxonomy term (a make, a model, a model year...)."""

    __tablename__ = "terms"
    __table_args__ = (UniqueConstraint("taxonomy", "slug", name="uq_terms_taxonomy_slug"),)

    id = Column(Integer, primary_key=True)
    taxonomy = Column(String, index=True, nullable=False)
    slug = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, default=0, nullable=False)

    posts = relationship("Post", secondary=post_terms, back_populates="terms")

    def __repr__(self):
        return f"<Term(id={self.id}, taxonomy='{self.taxonomy}', slug='{self.slug}')>"


class Post(Base):
    """Content item: vehicle records and tire products alike."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    post_type = Column(String, index=True, nullable=False)
    status = Column(String, index=True, default="publish", nullable=False)
    title = Column(String, default="", nullable=False)
    slug = Column(String, index=True)
    permalink = Column(String)
    thumbnail_url = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    terms = relationship("Term", secondary=post_terms, back_populates="posts")
    meta = relationship("PostMeta", back_populates="post", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Post(id={self.id}, type='{self.post_type}', title='{self.title}')>"


class PostMeta(Base):
    """Key/value metadata attached to a post. Keys may repeat."""

    __tablename__ = "post_meta"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id"), index=True, nullable=False)
    meta_key = Column(String, index=True, nullable=False)
    meta_value = Column(Text)

    post = relationship("Post", back_populates="meta")

    def __repr__(self):
        return f"<PostMeta(post_id={self.post_id}, key='{self.meta_key}')>"


class Option(Base):
    """Named JSON blob (site-wide settings and the search log)."""

    __tablename__ = "options"

    name = Column(String, primary_key=True)
    value = Column(JSON)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Option(name='{self.name}')>"


def term_option(term: Term) -> SelectOption:
    return SelectOption(value=term.slug, label=term.name)
