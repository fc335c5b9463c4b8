"""
StressReading — one timestamped stress observation.

Append-only. Rows are never updated; the only deletion is the bulk clear.
`timestamp` (epoch milliseconds) is the ordering key and is indexed but
not unique.
"""
from sqlalchemy import BigInteger, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from calmtrack.db.base import Base


class StressReading(Base):
    __tablename__ = "readings"
    __table_args__ = (
        CheckConstraint("stress IN (1, 2, 3)", name="ck_readings_stress"),
        # ids are never reused, even after a clear-all
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    time: Mapped[str] = mapped_column(String(32), nullable=False)
    timestamp: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True, comment="epoch milliseconds"
    )
    stress: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
