"""
wa_bridge.db.models

Session-state and message tables shared by both backends.

Responsibilities:
- Mirror the table contract the messaging client expects (`whatsmeow_*`).
- Define the bridge's own `chats` / `messages` tables.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, LargeBinary, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from wa_bridge.db.base import Base

def _device_fk() -> ForeignKey:
    return ForeignKey("whatsmeow_device.jid", ondelete="CASCADE", onupdate="CASCADE")


class WhatsmeowVersion(Base):
    __tablename__ = "whatsmeow_version"

    version: Mapped[int] = mapped_column(Integer, primary_key=True)
    compat: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Device(Base):
    __tablename__ = "whatsmeow_device"

    jid: Mapped[str] = mapped_column(Text, primary_key=True)
    lid: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Added later on existing remote stores by `db.reconcile`.
    facebook_uuid: Mapped[str | None] = mapped_column(Text, nullable=True)

    registration_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    noise_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    identity_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    signed_pre_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    signed_pre_key_id: Mapped[int] = mapped_column(Integer, nullable=False)
    signed_pre_key_sig: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    adv_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    adv_details: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    adv_account_sig: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    adv_account_sig_key: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    adv_device_sig: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    platform: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    business_name: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    push_name: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    lid_migration_ts: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))


class IdentityKey(Base):
    __tablename__ = "whatsmeow_identity_keys"

    our_jid: Mapped[str] = mapped_column(Text, _device_fk(), primary_key=True)
    their_id: Mapped[str] = mapped_column(Text, primary_key=True)
    identity: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    __table_args__ = (Index("whatsmeow_identity_keys_our_jid", "our_jid"),)


class PreKey(Base):
    __tablename__ = "whatsmeow_pre_keys"

    jid: Mapped[str] = mapped_column(Text, _device_fk(), primary_key=True)
    key_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    uploaded: Mapped[bool] = mapped_column(Boolean, nullable=False)

    __table_args__ = (Index("whatsmeow_pre_keys_jid", "jid"),)


class SignalSession(Base):
    __tablename__ = "whatsmeow_sessions"

    our_jid: Mapped[str] = mapped_column(Text, _device_fk(), primary_key=True)
    their_id: Mapped[str] = mapped_column(Text, primary_key=True)
    session: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    __table_args__ = (Index("whatsmeow_sessions_our_jid", "our_jid"),)


class LidMapping(Base):
    __tablename__ = "whatsmeow_lid_map"

    lid: Mapped[str] = mapped_column(Text, primary_key=True)
    pn: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class Chat(Base):
    __tablename__ = "chats"

    jid: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_message_time: Mapped[datetime | None] = mapped_column(nullable=True)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    chat_jid: Mapped[str] = mapped_column(Text, ForeignKey("chats.jid"), primary_key=True)
    sender: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime | None] = mapped_column(nullable=True)
    is_from_me: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    media_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    filename: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_key: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    file_sha256: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    file_enc_sha256: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    file_length: Mapped[int | None] = mapped_column(Integer, nullable=True)


# --- Module Notes -----------------------------------------------------------
# Column names are a contract with the messaging client and existing remote
# stores; rename nothing here. New columns on existing stores go through the
# requirement list in `db.reconcile` as well as this model.
