# src/docnotary/models/storage_cell.py
"""Addressed storage cells backing both registry storage strategies."""

from sqlalchemy import Integer, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from docnotary.db.session import Base


class StorageCell(Base):
    """One addressed record: a receiver descriptor, a document or a consumed digest.

    Segmented cells carry the size they were allocated with; mapping cells
    leave ``size`` empty and may be rewritten with any length.
    """

    __tablename__ = "storage_cell"

    address: Mapped[bytes] = mapped_column(LargeBinary, primary_key=True)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
