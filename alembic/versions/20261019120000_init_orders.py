
from alembic import op
import sqlalchemy as sa

revision = "20261019120000"
down_revision = None

product_type = sa.Enum("song", "portrait", "poetry", "book", name="product_type")
order_status = sa.Enum("processing", "complete", name="order_status")

def upgrade():
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('product_type', product_type, nullable=False),
        sa.Column('input_data', sa.JSON(), nullable=False),
        sa.Column('shipping_address', sa.JSON(), nullable=True),
        sa.Column('phone_number', sa.String(length=64), nullable=True),
        sa.Column('status', order_status, nullable=False, server_default='processing'),
        sa.Column('output_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
    )
    op.create_index('ix_orders_user_created', 'orders', ['user_id', 'created_at'])

def downgrade():
    op.drop_index('ix_orders_user_created', table_name='orders')
    op.drop_table('orders')
    order_status.drop(op.get_bind(), checkfirst=True)
    product_type.drop(op.get_bind(), checkfirst=True)
