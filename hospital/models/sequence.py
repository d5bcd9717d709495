from sqlalchemy import Column, Integer, String

from ..core.database import Base

class SequenceCounter(Base):
    """Last issued number of a human-readable identifier sequence."""
    __tablename__ = "sequence_counters"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<SequenceCounter(name='{self.name}', value={self.value})>"
