"""
Database models for published content.

Only the fields needed to hold and resolve media references are modelled;
page content itself is managed elsewhere.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# ============================================================================
# Content records
# ============================================================================

class Book(TimestampMixin, Base):
    """Book with cover image and downloadable PDF."""
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    cover_image_path = Column(Text, nullable=True)
    pdf_file_path = Column(Text, nullable=True)


class Sermon(TimestampMixin, Base):
    """Friday sermon (khutba)."""
    __tablename__ = "sermons"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    audio_file_path = Column(Text, nullable=True)
    thumbnail_path = Column(Text, nullable=True)
    pdf_file_path = Column(Text, nullable=True)


class Lesson(TimestampMixin, Base):
    """Lesson (dars)."""
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    audio_file_path = Column(Text, nullable=True)
    thumbnail_path = Column(Text, nullable=True)
    pdf_file_path = Column(Text, nullable=True)


class Article(TimestampMixin, Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    thumbnail = Column(Text, nullable=True)
    featured_image = Column(Text, nullable=True)


class Video(TimestampMixin, Base):
    """Externally hosted video (YouTube etc.) with a stored thumbnail."""
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    video_url = Column(Text, nullable=True)
    thumbnail = Column(Text, nullable=True)


class SiteSetting(Base):
    """Key/value site configuration (e.g. the navbar logo)."""
    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_site_setting_key', 'key'),
    )


# Media reference columns per content model
MEDIA_COLUMNS = {
    Book: ("cover_image_path", "pdf_file_path"),
    Sermon: ("audio_file_path", "thumbnail_path", "pdf_file_path"),
    Lesson: ("audio_file_path", "thumbnail_path", "pdf_file_path"),
    Article: ("thumbnail", "featured_image"),
    Video: ("thumbnail",),
}
