"""
Site branding APIs.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth.dependencies import get_db_session, get_signing_service, require_admin_key
from services.site_settings import InvalidMediaReferenceError, SiteSettingsService
from storage.media_reference import embed_url
from storage.presigned import get_presigned_url
from storage.signing import SigningService


router = APIRouter(prefix="/api/site", tags=["site"])


class BrandingUpdate(BaseModel):
    """Branding update request."""
    logo: str


def _branding_response(logo_key, signing_service: SigningService) -> dict:
    native_hosts = signing_service.config.all_native_hosts()
    return {
        "logoKey": logo_key,
        # For <img src>: static/external as-is, stored objects via /api/download
        "logo": embed_url(logo_key, native_hosts=native_hosts),
        # Directly loadable URL, valid for one hour (null when storage is unconfigured)
        "logoUrl": get_presigned_url(logo_key, signing_service),
    }


@router.get("/branding")
async def get_branding(
    db: Session = Depends(get_db_session),
    signing_service: SigningService = Depends(get_signing_service),
):
    """Current site logo. Public endpoint."""
    return _branding_response(SiteSettingsService.get_logo(db), signing_service)


@router.put("/branding", dependencies=[Depends(require_admin_key)])
async def update_branding(
    body: BrandingUpdate,
    db: Session = Depends(get_db_session),
    signing_service: SigningService = Depends(get_signing_service),
):
    """Replace the site logo. The canonical key is what gets stored."""
    try:
        stored = SiteSettingsService.set_logo(db, body.logo, signing_service.config.all_native_hosts())
    except InvalidMediaReferenceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _branding_response(stored, signing_service)
