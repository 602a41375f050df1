"""Database operations and management"""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Union

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.pool import StaticPool

from ..utils.text import sanitize_title
from .models import Base, MetaClause, Option, Post, PostMeta, TaxClause, Term, post_terms

logger = logging.getLogger(__name__)


class Database:
    """Content store: terms, posts, post meta and options.

    The query methods mirror the shape of a CMS query API so the search
    layer can express lookups as taxonomy and meta clauses.
    """

    def __init__(self, db_url: str = "sqlite:///data/db/tirepoint.db", echo: bool = False):
        self.db_url = db_url
        self.engine = create_engine(db_url, echo=echo, **self._engine_options(db_url))
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Database initialized: {db_url}")

    @staticmethod
    def _engine_options(db_url: str) -> dict:
        url = make_url(db_url)
        if not url.drivername.startswith("sqlite"):
            return {}

        options: dict = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # one shared connection, otherwise every thread sees an empty database
            options["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return options

    @contextmanager
    def session(self):
        """Context manager for database sessions"""
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Terms
    # ------------------------------------------------------------------

    def get_terms(
        self,
        taxonomy: str,
        parent: Optional[int] = None,
        hide_empty: bool = False,
        orderby: str = "name",
        order: str = "ASC",
    ) -> list[Term]:
        """Get terms of a taxonomy.

        Args:
            taxonomy: Taxonomy name
            parent: Only terms with this parent id (0 for top level)
            hide_empty: Drop terms that no published post carries
            orderby: name, slug or id
            order: ASC or DESC
        """
        with self.session() as session:
            query = session.query(Term).filter(Term.taxonomy == taxonomy)

            if parent is not None:
                query = query.filter(Term.parent_id == parent)

            if hide_empty:
                used = (
                    select(post_terms.c.term_id)
                    .join(Post, Post.id == post_terms.c.post_id)
                    .where(Post.status == "publish")
                )
                query = query.filter(Term.id.in_(used))

            column = {"name": Term.name, "slug": Term.slug, "id": Term.id}.get(orderby, Term.name)
            if order.upper() == "DESC":
                query = query.order_by(column.desc(), Term.id.desc())
            else:
                query = query.order_by(column.asc(), Term.id.asc())

            terms = query.all()
            session.expunge_all()
            return terms

    def get_term_by(self, taxonomy: str, field: str, value: Any) -> Optional[Term]:
        """Get a single term by slug, name (case-insensitive) or id"""
        with self.session() as session:
            query = session.query(Term).filter(Term.taxonomy == taxonomy)

            if field == "slug":
                query = query.filter(Term.slug == str(value))
            elif field == "name":
                query = query.filter(func.lower(Term.name) == str(value).lower())
            elif field == "id":
                query = query.filter(Term.id == int(value))
            else:
                raise ValueError(f"Unknown term field: {field}")

            term = query.order_by(Term.id).first()
            if term:
                session.expunge(term)
            return term

    def insert_term(
        self, taxonomy: str, name: str, slug: Optional[str] = None, parent_id: int = 0
    ) -> Term:
        """Create a term, or return the existing one with the same slug"""
        slug = slug or sanitize_title(name)
        with self.session() as session:
            term = self._ensure_term(session, taxonomy, name, slug, parent_id)
            session.expunge(term)
            return term

    def _ensure_term(
        self, session: Session, taxonomy: str, name: str, slug: str, parent_id: int = 0
    ) -> Term:
        term = (
            session.query(Term)
            .filter(Term.taxonomy == taxonomy, Term.slug == slug)
            .first()
        )
        if term is None:
            term = Term(taxonomy=taxonomy, slug=slug, name=name, parent_id=parent_id)
            session.add(term)
            session.flush()
            logger.debug(f"Created term {taxonomy}/{slug}")
        return term

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def get_posts(
        self,
        post_type: Union[str, Sequence[str], None] = None,
        status: Optional[str] = "publish",
        tax_query: Optional[Iterable[TaxClause]] = None,
        meta_query: Optional[Iterable[MetaClause]] = None,
        limit: Optional[int] = None,
        orderby: str = "date",
        order: str = "DESC",
    ) -> list[Post]:
        """Query posts.

        Taxonomy and meta clauses are combined with AND. A taxonomy clause
        matches posts carrying any of its terms.

        Args:
            post_type: Post type or list of post types, None for all
            status: Post status, None for any
            tax_query: Taxonomy clauses
            meta_query: Meta clauses
            limit: Maximum number of posts, None or -1 for all
            orderby: date, title or id
            order: ASC or DESC
        """
        with self.session() as session:
            query = session.query(Post)

            if post_type:
                types = [post_type] if isinstance(post_type, str) else list(post_type)
                query = query.filter(Post.post_type.in_(types))

            if status:
                query = query.filter(Post.status == status)

            for clause in tax_query or []:
                query = query.filter(Post.id.in_(self._tax_subquery(clause)))

            for clause in meta_query or []:
                query = query.filter(Post.id.in_(self._meta_subquery(clause)))

            column = {
                "date": Post.created_at,
                "title": Post.title,
                "id": Post.id,
            }.get(orderby, Post.created_at)
            if order.upper() == "ASC":
                query = query.order_by(column.asc(), Post.id.asc())
            else:
                query = query.order_by(column.desc(), Post.id.desc())

            if limit is not None and limit >= 0:
                query = query.limit(limit)

            posts = query.all()
            session.expunge_all()
            return posts

    def _tax_subquery(self, clause: TaxClause):
        column = {"slug": Term.slug, "name": Term.name, "id": Term.id}.get(clause.field)
        if column is None:
            raise ValueError(f"Unknown term field: {clause.field}")

        return (
            select(post_terms.c.post_id)
            .join(Term, Term.id == post_terms.c.term_id)
            .where(Term.taxonomy == clause.taxonomy, column.in_(list(clause.terms)))
        )

    def _meta_subquery(self, clause: MetaClause):
        compare = clause.compare.upper()
        query = select(PostMeta.post_id).where(PostMeta.meta_key == clause.key)

        if compare == "IN":
            values = clause.value if isinstance(clause.value, list) else [clause.value]
            return query.where(PostMeta.meta_value.in_([str(v) for v in values]))
        if compare == "=":
            return query.where(PostMeta.meta_value == str(clause.value))
        raise ValueError(f"Unsupported meta compare: {clause.compare}")

    def get_post(self, post_id: int) -> Optional[Post]:
        """Get a single post by ID"""
        with self.session() as session:
            post = session.get(Post, post_id)
            if post:
                session.expunge(post)
            return post

    def insert_post(
        self,
        post_type: str,
        title: str,
        status: str = "publish",
        slug: Optional[str] = None,
        permalink: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Post:
        """Create a post"""
        with self.session() as session:
            post = Post(
                post_type=post_type,
                status=status,
                title=title,
                slug=slug or sanitize_title(title),
                permalink=permalink,
                thumbnail_url=thumbnail_url,
                created_at=created_at or datetime.utcnow(),
            )
            session.add(post)
            session.flush()
            logger.debug(f"Inserted {post_type} post: {title} (ID: {post.id})")
            session.expunge(post)
            return post

    def set_post_terms(
        self, post_id: int, taxonomy: str, names: Iterable[str], append: bool = False
    ) -> list[Term]:
        """Attach terms (by name, created on demand) to a post.

        Without ``append`` the post's existing terms in the taxonomy are
        replaced.
        """
        with self.session() as session:
            post = session.get(Post, post_id)
            if post is None:
                raise LookupError(f"Post {post_id} not found")

            terms = [
                self._ensure_term(session, taxonomy, str(name), sanitize_title(str(name)))
                for name in names
                if str(name).strip()
            ]

            kept = list(post.terms) if append else [t for t in post.terms if t.taxonomy != taxonomy]
            for term in terms:
                if term not in kept:
                    kept.append(term)
            post.terms = kept
            session.flush()

            session.expunge_all()
            return terms

    def get_post_terms(self, post_id: int, taxonomy: str) -> list[Term]:
        """Get the terms of a post in one taxonomy, ordered by name"""
        with self.session() as session:
            terms = (
                session.query(Term)
                .join(post_terms, post_terms.c.term_id == Term.id)
                .filter(post_terms.c.post_id == post_id, Term.taxonomy == taxonomy)
                .order_by(Term.name.asc(), Term.id.asc())
                .all()
            )
            session.expunge_all()
            return terms

    # ------------------------------------------------------------------
    # Post meta
    # ------------------------------------------------------------------

    def add_post_meta(self, post_id: int, key: str, value: Any):
        """Add a meta row; existing rows with the same key are kept"""
        with self.session() as session:
            session.add(
                PostMeta(
                    post_id=post_id,
                    meta_key=key,
                    meta_value=None if value is None else str(value),
                )
            )

    def get_post_meta(self, post_id: int, key: str, single: bool = True):
        """Get meta values for a key.

        Returns the first value (or ``""``) when ``single``, otherwise the
        list of every value in insertion order.
        """
        with self.session() as session:
            rows = (
                session.query(PostMeta.meta_value)
                .filter(PostMeta.post_id == post_id, PostMeta.meta_key == key)
                .order_by(PostMeta.id.asc())
                .all()
            )

        values = [row[0] if row[0] is not None else "" for row in rows]
        if single:
            return values[0] if values else ""
        return values

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def get_option(self, name: str, default: Any = None) -> Any:
        """Get an option value"""
        with self.session() as session:
            option = session.get(Option, name)
            if option is None:
                return default
            return option.value

    def update_option(self, name: str, value: Any):
        """Create or replace an option value"""
        with self.session() as session:
            option = session.get(Option, name)
            if option is None:
                session.add(Option(name=name, value=value))
            else:
                option.value = value
                flag_modified(option, "value")
