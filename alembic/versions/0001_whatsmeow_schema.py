"""whatsmeow_schema

Creates the session-state tables the messaging client expects, plus the
bridge's chats/messages tables, on a fresh remote store.

Revision ID: 0001
Revises:
Create Date: 2025-07-30 13:15:36

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_DEVICE_FK = dict(ondelete="CASCADE", onupdate="CASCADE")


def upgrade() -> None:
    """Create whatsmeow_* and bridge tables."""
    op.create_table(
        "whatsmeow_version",
        sa.Column("version", sa.Integer, primary_key=True),
        sa.Column("compat", sa.Integer, nullable=True),
    )
    op.create_table(
        "whatsmeow_device",
        sa.Column("jid", sa.Text, primary_key=True),
        sa.Column("lid", sa.Text, nullable=True),
        sa.Column("facebook_uuid", sa.Text, nullable=True),
        sa.Column("registration_id", sa.BigInteger, nullable=False),
        sa.Column("noise_key", sa.LargeBinary, nullable=False),
        sa.Column("identity_key", sa.LargeBinary, nullable=False),
        sa.Column("signed_pre_key", sa.LargeBinary, nullable=False),
        sa.Column("signed_pre_key_id", sa.Integer, nullable=False),
        sa.Column("signed_pre_key_sig", sa.LargeBinary, nullable=False),
        sa.Column("adv_key", sa.LargeBinary, nullable=False),
        sa.Column("adv_details", sa.LargeBinary, nullable=False),
        sa.Column("adv_account_sig", sa.LargeBinary, nullable=False),
        sa.Column("adv_account_sig_key", sa.LargeBinary, nullable=True),
        sa.Column("adv_device_sig", sa.LargeBinary, nullable=False),
        sa.Column("platform", sa.Text, nullable=False, server_default=""),
        sa.Column("business_name", sa.Text, nullable=False, server_default=""),
        sa.Column("push_name", sa.Text, nullable=False, server_default=""),
        sa.Column("lid_migration_ts", sa.BigInteger, nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "whatsmeow_identity_keys",
        sa.Column("our_jid", sa.Text, sa.ForeignKey("whatsmeow_device.jid", **_DEVICE_FK), primary_key=True),
        sa.Column("their_id", sa.Text, primary_key=True),
        sa.Column("identity", sa.LargeBinary, nullable=False),
    )
    op.create_index("whatsmeow_identity_keys_our_jid", "whatsmeow_identity_keys", ["our_jid"])
    op.create_table(
        "whatsmeow_pre_keys",
        sa.Column("jid", sa.Text, sa.ForeignKey("whatsmeow_device.jid", **_DEVICE_FK), primary_key=True),
        sa.Column("key_id", sa.Integer, primary_key=True),
        sa.Column("key", sa.LargeBinary, nullable=False),
        sa.Column("uploaded", sa.Boolean, nullable=False),
    )
    op.create_index("whatsmeow_pre_keys_jid", "whatsmeow_pre_keys", ["jid"])
    op.create_table(
        "whatsmeow_sessions",
        sa.Column("our_jid", sa.Text, sa.ForeignKey("whatsmeow_device.jid", **_DEVICE_FK), primary_key=True),
        sa.Column("their_id", sa.Text, primary_key=True),
        sa.Column("session", sa.LargeBinary, nullable=True),
    )
    op.create_index("whatsmeow_sessions_our_jid", "whatsmeow_sessions", ["our_jid"])
    op.create_table(
        "whatsmeow_lid_map",
        sa.Column("lid", sa.Text, primary_key=True),
        sa.Column("pn", sa.Text, nullable=False, unique=True),
    )
    op.create_table(
        "chats",
        sa.Column("jid", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=True),
        sa.Column("last_message_time", sa.DateTime, nullable=True),
    )
    op.create_table(
        "messages",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("chat_jid", sa.Text, sa.ForeignKey("chats.jid"), primary_key=True),
        sa.Column("sender", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime, nullable=True),
        sa.Column("is_from_me", sa.Boolean, nullable=True),
        sa.Column("media_type", sa.Text, nullable=True),
        sa.Column("filename", sa.Text, nullable=True),
        sa.Column("url", sa.Text, nullable=True),
        sa.Column("media_key", sa.LargeBinary, nullable=True),
        sa.Column("file_sha256", sa.LargeBinary, nullable=True),
        sa.Column("file_enc_sha256", sa.LargeBinary, nullable=True),
        sa.Column("file_length", sa.Integer, nullable=True),
    )


def downgrade() -> None:
    """Drop all tables created by upgrade()."""
    op.drop_table("messages")
    op.drop_table("chats")
    op.drop_table("whatsmeow_lid_map")
    op.drop_index("whatsmeow_sessions_our_jid", table_name="whatsmeow_sessions")
    op.drop_table("whatsmeow_sessions")
    op.drop_index("whatsmeow_pre_keys_jid", table_name="whatsmeow_pre_keys")
    op.drop_table("whatsmeow_pre_keys")
    op.drop_index("whatsmeow_identity_keys_our_jid", table_name="whatsmeow_identity_keys")
    op.drop_table("whatsmeow_identity_keys")
    op.drop_table("whatsmeow_device")
    op.drop_table("whatsmeow_version")
