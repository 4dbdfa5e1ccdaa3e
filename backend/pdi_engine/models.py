# backend/pdi_engine/models.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, PrimaryKeyConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class PDIDocument(Base):
    """
    Key-value row for one PDI entity (template or inspection).

    The engine owns the record shape; this table only stores the flat JSON
    produced by the domain `as_dict()` helpers.
    """

    __tablename__ = "pdi_documents"
    __table_args__ = (PrimaryKeyConstraint("kind", "id", name="pk_pdi_documents"),)

    kind: Mapped[str] = mapped_column(String(32), nullable=False)  # template|inspection
    id: Mapped[str] = mapped_column(String(64), nullable=False)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
