from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from core_api.database import Base


# ---------------------------------------------------------------------------
# Entry: one row per entity, for every content type
# ---------------------------------------------------------------------------
class Entry(Base):
    __tablename__ = "entries"

    __table_args__ = (
        # Default listing order within a content type
        Index("ix_entries_content_type_created_at", "content_type", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_type: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    # Attribute values keyed by attribute name; relations hold target ids.
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )
