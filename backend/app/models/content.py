# app/models/content.py

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)

from app.core.expiry import utcnow
from app.models.base import Base


class ContentKind(str, enum.Enum):
    TEXT = "text"
    FILE = "file"


class Content(Base):
    __tablename__ = "contents"

    # Share id, safe to put in a URL
    id = Column(String(16), primary_key=True)
    kind = Column(
        Enum(ContentKind, values_callable=lambda kinds: [k.value for k in kinds], name="content_kind"),
        nullable=False,
    )

    # Text payload
    text = Column(Text, nullable=True)

    # File payload; storage_ref is a file name inside the upload directory
    storage_ref = Column(String(255), nullable=True)
    original_name = Column(String(255), nullable=True)
    byte_size = Column(Integer, nullable=True)
    mime_type = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    view_count = Column(Integer, default=0, nullable=False)
    max_views = Column(Integer, nullable=True)
    one_time_view = Column(Boolean, default=False, nullable=False)

    password_hash = Column(String(256), nullable=True)
    delete_token = Column(String(128), nullable=True)

    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # Lower-cased emails; empty means anyone with the link
    allowed_identities = Column(JSON, default=list, nullable=False)

    @property
    def is_file(self) -> bool:
        return self.kind == ContentKind.FILE

    def is_expired(self, now) -> bool:
        return now >= self.expires_at
