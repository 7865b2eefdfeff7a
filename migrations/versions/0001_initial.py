"""initial schema: categories, attribute values, url rewrites, roles, rules, admin users; seed category roots

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=True),
        sa.Column("path", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("include_in_menu", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("available_sort_by", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_categories_parent_id", "categories", ["parent_id"], unique=False)
    op.create_index("ix_categories_path", "categories", ["path"], unique=False)

    op.create_table(
        "category_attribute_values",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("attribute_code", sa.String(length=64), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.UniqueConstraint("category_id", "attribute_code", name="uq_category_attribute_values_code"),
    )
    op.create_index("ix_category_attribute_values_category_id", "category_attribute_values", ["category_id"], unique=False)

    op.create_table(
        "url_rewrites",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("request_path", sa.String(length=255), nullable=False),
        sa.Column("target_path", sa.String(length=255), nullable=False),
        sa.Column("redirect_type", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("store_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_autogenerated", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.UniqueConstraint("request_path", "store_id", name="uq_url_rewrites_request_path_store"),
    )
    op.create_index("ix_url_rewrites_entity_type", "url_rewrites", ["entity_type"], unique=False)
    op.create_index("ix_url_rewrites_entity_id", "url_rewrites", ["entity_id"], unique=False)

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_roles_name", "roles", ["name"], unique=True)

    op.create_table(
        "authorization_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("resource_id", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("role_id", "resource_id", name="uq_authorization_rules_role_resource"),
    )
    op.create_index("ix_authorization_rules_role_id", "authorization_rules", ["role_id"], unique=False)

    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=40), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=64), nullable=False),
        sa.Column("last_name", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_admin_users_username", "admin_users", ["username"], unique=True)
    op.create_index("ix_admin_users_email", "admin_users", ["email"], unique=True)
    op.create_index("ix_admin_users_role_id", "admin_users", ["role_id"], unique=False)

    # seed the reserved category roots; the app seeds the admin role and user on startup
    categories_table = sa.table(
        "categories",
        sa.column("id", sa.Integer()),
        sa.column("parent_id", sa.Integer()),
        sa.column("path", sa.String()),
        sa.column("level", sa.Integer()),
        sa.column("position", sa.Integer()),
        sa.column("name", sa.String()),
        sa.column("available_sort_by", sa.JSON()),
    )
    op.bulk_insert(
        categories_table,
        [
            {"id": 1, "parent_id": None, "path": "1", "level": 0, "position": 0, "name": "Root Catalog", "available_sort_by": []},
            {"id": 2, "parent_id": 1, "path": "1/2", "level": 1, "position": 1, "name": "Default Category", "available_sort_by": []},
        ],
    )
    if op.get_bind().dialect.name == "postgresql":
        op.execute("SELECT setval(pg_get_serial_sequence('categories', 'id'), (SELECT MAX(id) FROM categories))")


def downgrade():
    op.drop_index("ix_admin_users_role_id", table_name="admin_users")
    op.drop_index("ix_admin_users_email", table_name="admin_users")
    op.drop_index("ix_admin_users_username", table_name="admin_users")
    op.drop_table("admin_users")
    op.drop_index("ix_authorization_rules_role_id", table_name="authorization_rules")
    op.drop_table("authorization_rules")
    op.drop_index("ix_roles_name", table_name="roles")
    op.drop_table("roles")
    op.drop_index("ix_url_rewrites_entity_id", table_name="url_rewrites")
    op.drop_index("ix_url_rewrites_entity_type", table_name="url_rewrites")
    op.drop_table("url_rewrites")
    op.drop_index("ix_category_attribute_values_category_id", table_name="category_attribute_values")
    op.drop_table("category_attribute_values")
    op.drop_index("ix_categories_path", table_name="categories")
    op.drop_index("ix_categories_parent_id", table_name="categories")
    op.drop_table("categories")
