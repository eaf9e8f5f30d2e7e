"""Initial commerce schema: businesses, inventory, carts, drafts, ledgers, pricing

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", sa.String(32), nullable=False)


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False)


def _updated_at():
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False)


def _version_id():
    return sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1"))


def upgrade():
    op.create_table(
        "businesses",
        _id(),
        sa.Column("gstin", sa.String(32), nullable=False),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("owner_name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(32), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("business_type", sa.String(64), nullable=True),
        sa.Column("owner_image", sa.String(512), nullable=True),
        sa.Column("business_image", sa.String(512), nullable=True),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("businesses", schema=None) as batch_op:
        batch_op.create_index("ix_businesses_contact", ["contact"], unique=True)
        batch_op.create_index("ix_businesses_business_name", ["business_name"], unique=False)

    op.create_table(
        "customers",
        _id(),
        sa.Column("business_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(32), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("linked_business_id", sa.String(32), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["linked_business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_business_id", ["business_id"], unique=False)
        batch_op.create_index("ix_customers_owner_name", ["business_id", "name"], unique=False)
        batch_op.create_index("ix_customers_owner_linked", ["business_id", "linked_business_id"], unique=False)

    op.create_table(
        "inventory_items",
        _id(),
        sa.Column("business_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit", sa.String(32), nullable=True),
        sa.Column("gen_price_cents", sa.Integer(), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=True),
        sa.Column("cgst", sa.Numeric(5, 2), nullable=True),
        sa.Column("sgst", sa.Numeric(5, 2), nullable=True),
        sa.Column("gst", sa.Numeric(5, 2), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("qty >= 0", name="ck_inventory_items_qty_non_negative"),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("inventory_items", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_items_business_id", ["business_id"], unique=False)
        batch_op.create_index("ix_inventory_items_business_name", ["business_id", "name"], unique=False)

    op.create_table(
        "carts",
        _id(),
        sa.Column("buyer_id", sa.String(32), nullable=False),
        sa.Column("seller_id", sa.String(32), nullable=True),
        _created_at(),
        _updated_at(),
        _version_id(),
        sa.ForeignKeyConstraint(["buyer_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["seller_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("carts", schema=None) as batch_op:
        batch_op.create_index("ix_carts_buyer_id", ["buyer_id"], unique=True)
        batch_op.create_index("ix_carts_seller_id", ["seller_id"], unique=False)

    op.create_table(
        "cart_items",
        _id(),
        sa.Column("cart_id", sa.String(32), nullable=False),
        sa.Column("product_id", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
        sa.ForeignKeyConstraint(["cart_id"], ["carts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )
    with op.batch_alter_table("cart_items", schema=None) as batch_op:
        batch_op.create_index("ix_cart_items_cart_id", ["cart_id"], unique=False)

    op.create_table(
        "draft_orders",
        _id(),
        sa.Column("business_id", sa.String(32), nullable=False),
        sa.Column("customer_id", sa.String(32), nullable=False),
        sa.Column("created_by_id", sa.String(32), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("transaction_type", sa.String(16), nullable=True),
        sa.Column("status", sa.String(16), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=True),
        _created_at(),
        _updated_at(),
        _version_id(),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("draft_orders", schema=None) as batch_op:
        batch_op.create_index("ix_draft_orders_business_id", ["business_id"], unique=False)
        batch_op.create_index("ix_draft_orders_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_draft_orders_parties", ["business_id", "customer_id"], unique=False)

    op.create_table(
        "draft_order_lines",
        _id(),
        sa.Column("order_id", sa.String(32), nullable=False),
        sa.Column("product_id", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["order_id"], ["draft_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id", "product_id", name="uq_draft_order_lines_order_product"),
    )
    with op.batch_alter_table("draft_order_lines", schema=None) as batch_op:
        batch_op.create_index("ix_draft_order_lines_order_id", ["order_id"], unique=False)

    op.create_table(
        "sales",
        _id(),
        sa.Column("seller_id", sa.String(32), nullable=False),
        sa.Column("buyer_type", sa.String(16), nullable=False),
        sa.Column("buyer_id", sa.String(32), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["seller_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_seller_id", ["seller_id"], unique=False)
        batch_op.create_index("ix_sales_seller_created", ["seller_id", "created_at"], unique=False)
        batch_op.create_index("ix_sales_buyer", ["buyer_type", "buyer_id"], unique=False)

    op.create_table(
        "sale_lines",
        _id(),
        sa.Column("sale_id", sa.String(32), nullable=False),
        sa.Column("product_id", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("line_total_cents", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("sale_lines", schema=None) as batch_op:
        batch_op.create_index("ix_sale_lines_sale_id", ["sale_id"], unique=False)

    op.create_table(
        "purchases",
        _id(),
        sa.Column("sale_id", sa.String(32), nullable=False),
        sa.Column("buyer_id", sa.String(32), nullable=False),
        sa.Column("seller_id", sa.String(32), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["buyer_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["seller_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sale_id", name="uq_purchases_sale"),
    )
    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.create_index("ix_purchases_buyer_id", ["buyer_id"], unique=False)
        batch_op.create_index("ix_purchases_seller_id", ["seller_id"], unique=False)
        batch_op.create_index("ix_purchases_buyer_created", ["buyer_id", "created_at"], unique=False)

    op.create_table(
        "purchase_lines",
        _id(),
        sa.Column("purchase_id", sa.String(32), nullable=False),
        sa.Column("product_id", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("line_total_cents", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("purchase_lines", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_lines_purchase_id", ["purchase_id"], unique=False)

    op.create_table(
        "notifications",
        _id(),
        sa.Column("initiator_id", sa.String(32), nullable=False),
        sa.Column("recipient_id", sa.String(32), nullable=False),
        sa.Column("order_type", sa.String(16), nullable=True),
        sa.Column("order_id", sa.String(32), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        _updated_at(),
        _version_id(),
        sa.CheckConstraint(
            "(order_id IS NULL AND order_type IS NULL) OR (order_id IS NOT NULL AND order_type IS NOT NULL)",
            name="ck_notifications_order_ref_tagged",
        ),
        sa.ForeignKeyConstraint(["initiator_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["recipient_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("notifications", schema=None) as batch_op:
        batch_op.create_index("ix_notifications_initiator_id", ["initiator_id"], unique=False)
        batch_op.create_index("ix_notifications_recipient_id", ["recipient_id"], unique=False)
        batch_op.create_index("ix_notifications_recipient_read", ["recipient_id", "is_read"], unique=False)
        batch_op.create_index("ix_notifications_order_ref", ["order_type", "order_id"], unique=False)

    op.create_table(
        "personalized_prices",
        _id(),
        sa.Column("business_id", sa.String(32), nullable=False),
        sa.Column("customer_id", sa.String(32), nullable=False),
        sa.Column("product_id", sa.String(32), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("effective_date", sa.String(8), nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("price_cents >= 0", name="ck_personalized_prices_price_non_negative"),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["inventory_items.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_id", "customer_id", "product_id", name="uq_personalized_prices_key"),
    )
    with op.batch_alter_table("personalized_prices", schema=None) as batch_op:
        batch_op.create_index("ix_personalized_prices_business_customer", ["business_id", "customer_id"], unique=False)

    op.create_table(
        "session_tokens",
        _id(),
        sa.Column("business_id", sa.String(32), nullable=False),
        sa.Column("token_type", sa.String(16), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        _created_at(),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_business_id", ["business_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_business_active", ["business_id", "is_revoked"], unique=False)

    op.create_table(
        "invoices",
        _id(),
        sa.Column("invoice_number", sa.String(64), nullable=False),
        sa.Column("sale_id", sa.String(32), nullable=False),
        sa.Column("purchase_id", sa.String(32), nullable=True),
        sa.Column("storage_key", sa.String(255), nullable=False),
        sa.Column("url", sa.String(1024), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sale_id", name="uq_invoices_sale"),
        sa.UniqueConstraint("invoice_number", name="uq_invoices_number"),
    )
    with op.batch_alter_table("invoices", schema=None) as batch_op:
        batch_op.create_index("ix_invoices_purchase_id", ["purchase_id"], unique=False)


def downgrade():
    op.drop_table("invoices")
    op.drop_table("session_tokens")
    op.drop_table("personalized_prices")
    op.drop_table("notifications")
    op.drop_table("purchase_lines")
    op.drop_table("purchases")
    op.drop_table("sale_lines")
    op.drop_table("sales")
    op.drop_table("draft_order_lines")
    op.drop_table("draft_orders")
    op.drop_table("cart_items")
    op.drop_table("carts")
    op.drop_table("inventory_items")
    op.drop_table("customers")
    op.drop_table("businesses")
