from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from shortener.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True)
    code = Column(String(8), unique=True, index=True, nullable=False)
    original_url = Column(Text, nullable=False)
    clicks = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    last_clicked = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Link {self.code} -> {self.original_url} clicks={self.clicks}>"
