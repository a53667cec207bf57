"""
Site settings service (navbar logo and similar key/value settings).

The database row is the only source of truth for the logo; clients do not
keep their own copy.
"""
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from core.logger import logger
from database.models import SiteSetting
from storage.media_reference import normalize_reference

LOGO_KEY = "navbar_logo"


class InvalidMediaReferenceError(ValueError):
    """A reference that can neither be served nor stored."""


class SiteSettingsService:
    """Service for site-wide settings."""

    @staticmethod
    def get(db: Session, key: str) -> Optional[str]:
        setting = db.query(SiteSetting).filter(SiteSetting.key == key).first()
        return setting.value if setting else None

    @staticmethod
    def set(db: Session, key: str, value: Optional[str]) -> SiteSetting:
        setting = db.query(SiteSetting).filter(SiteSetting.key == key).first()
        if setting is None:
            setting = SiteSetting(key=key, value=value)
            db.add(setting)
        else:
            setting.value = value
        db.commit()
        db.refresh(setting)
        return setting

    @staticmethod
    def get_logo(db: Session) -> Optional[str]:
        return SiteSettingsService.get(db, LOGO_KEY)

    @staticmethod
    def set_logo(db: Session, reference: str, native_hosts: Optional[Iterable[str]] = None) -> str:
        """
        Store a new logo reference.

        Legacy endpoint/native URLs are reduced to their canonical key before
        saving; external and static URLs are stored as given.

        Raises:
            InvalidMediaReferenceError: If the reference is empty or unrecognized
        """
        normalized = normalize_reference(reference, native_hosts)
        if normalized.is_absent:
            raise InvalidMediaReferenceError(f"Unrecognized media reference: {reference!r}")
        SiteSettingsService.set(db, LOGO_KEY, normalized.value)
        logger.info(f"Site logo updated to {normalized.value}")
        return normalized.value
