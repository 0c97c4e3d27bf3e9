"""
Shared fixtures for schema inspector tests.
"""

import pytest

from schema_tools.models import Column, Environment, ForeignKey, Index, Schema, Table


@pytest.fixture
def users_table() -> Table:
    return Table(
        name="users",
        columns=(
            Column("id", "INTEGER", is_primary_key=True, is_nullable=False),
            Column("email", "TEXT", is_nullable=False),
            Column("name", "TEXT"),
        ),
        indexes=(Index("idx_users_email", "users", ("email",), is_unique=True),),
    )


@pytest.fixture
def posts_table() -> Table:
    return Table(
        name="posts",
        columns=(
            Column("id", "INTEGER", is_primary_key=True, is_nullable=False),
            Column("user_id", "INTEGER"),
            Column("title", "TEXT", is_nullable=False),
        ),
        foreign_keys=(ForeignKey("posts", "user_id", "users", "id", on_delete="CASCADE"),),
    )


@pytest.fixture
def comments_table() -> Table:
    return Table(
        name="comments",
        columns=(
            Column("id", "INTEGER", is_primary_key=True, is_nullable=False),
            Column("post_id", "INTEGER", is_nullable=False),
            Column("user_id", "INTEGER"),
            Column("body", "TEXT"),
        ),
        indexes=(Index("idx_comments_post_id", "comments", ("post_id",)),),
        foreign_keys=(
            ForeignKey("comments", "post_id", "posts", "id", on_delete="CASCADE"),
            ForeignKey("comments", "user_id", "users", "id", on_delete="SET NULL"),
        ),
    )


@pytest.fixture
def blog_tables(users_table: Table, posts_table: Table, comments_table: Table) -> tuple[Table, ...]:
    return (users_table, posts_table, comments_table)


@pytest.fixture
def blog_schema(blog_tables: tuple[Table, ...]) -> Schema:
    return Schema(name="blog", environment=Environment.DEVELOPMENT, tables=blog_tables)
