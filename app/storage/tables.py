"""ORM tables for users, images and their derived metadata."""

from datetime import datetime, timezone
from typing import List
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

def new_id() -> str:
    """Generates a new unique row ID."""
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash, never the raw value
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    images = relationship("Image", back_populates="user")


class Image(Base):
    """An image hosted by the media gateway and owned by one user."""

    __tablename__ = "images"

    # Monotonic insertion order; breaks created_at ties newest-inserted first
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    public_id = Column(String(255), nullable=False)
    secure_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="images")
    image_metadata = relationship(
        "ImageMetadata",
        back_populates="image",
        uselist=False,
        cascade="all, delete-orphan",
    )


class ImageMetadata(Base):
    """Derived metadata, one row per image.

    Tags and colours live in child tables so that membership and overlap
    checks compile to plain EXISTS sub-queries on every backend.
    """

    __tablename__ = "image_metadata"

    id = Column(String(36), primary_key=True, default=new_id)
    image_id = Column(String(36), ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    ai_processing_status = Column(String(32), nullable=False, default="completed")

    image = relationship("Image", back_populates="image_metadata")
    tag_rows = relationship(
        "ImageTag",
        order_by="ImageTag.position",
        cascade="all, delete-orphan",
    )
    color_rows = relationship(
        "ImageColor",
        order_by="ImageColor.position",
        cascade="all, delete-orphan",
    )

    @property
    def tags(self) -> List[str]:
        return [row.tag for row in self.tag_rows]

    @tags.setter
    def tags(self, values: List[str]):
        self.tag_rows = [ImageTag(position=i, tag=value) for i, value in enumerate(values)]

    @property
    def colors(self) -> List[str]:
        return [row.color for row in self.color_rows]

    @colors.setter
    def colors(self, values: List[str]):
        self.color_rows = [ImageColor(position=i, color=value) for i, value in enumerate(values)]


class ImageTag(Base):
    __tablename__ = "image_metadata_tags"
    __table_args__ = (UniqueConstraint("metadata_id", "position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    metadata_id = Column(String(36), ForeignKey("image_metadata.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    tag = Column(String(255), nullable=False, index=True)


class ImageColor(Base):
    __tablename__ = "image_metadata_colors"
    __table_args__ = (UniqueConstraint("metadata_id", "position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    metadata_id = Column(String(36), ForeignKey("image_metadata.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    color = Column(String(64), nullable=False, index=True)  # stored lower-cased
