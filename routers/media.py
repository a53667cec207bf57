"""
Media access APIs: signed download links and uploads.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse, RedirectResponse

from auth.dependencies import get_signing_service, require_upload_access
from core.logger import logger
from core.validators import validate_file_size
from services.upload_service import UploadFailedError, UploadRejectedError, UploadService
from storage.media_reference import is_local_path, normalize_reference
from storage.signing import SigningError, SigningService, StorageNotConfiguredError
import config


router = APIRouter(prefix="/api", tags=["media"])


def _cache_headers(max_age: int) -> dict:
    # Never cache longer than the signed URL itself stays valid
    return {
        "Cache-Control": f"public, max-age={max_age}",
        "CDN-Cache-Control": f"max-age={max_age}",
    }


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    body = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


def _url_response(url: str, as_json: bool, max_age: int):
    if as_json:
        return JSONResponse({"url": url}, headers=_cache_headers(max_age))
    # Redirect so it works in <img>, <audio>, <video>, <iframe>, and normal links
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND, headers=_cache_headers(max_age))


@router.get("/download")
async def download(
    key: Optional[str] = Query(None, description="Stored media reference or canonical key"),
    format: Optional[str] = Query(None, description="'json' for a JSON body instead of a redirect"),
    signing_service: SigningService = Depends(get_signing_service),
):
    """
    Resolve a media reference to something a browser can load.

    Without ``format=json`` the response is a 302 to a signed URL so the endpoint
    can be used directly as a media ``src``. Public endpoint.
    """
    as_json = format == "json"
    if not key or not key.strip():
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required query parameter: key")

    reference = normalize_reference(key, signing_service.config.all_native_hosts())

    if reference.is_absent:
        return _error(status.HTTP_400_BAD_REQUEST, "Unrecognized media reference")

    if reference.is_passthrough:
        if not as_json and not is_local_path(reference.value):
            # Only same-origin paths are redirected to; anything else would be an open redirect
            return _error(
                status.HTTP_400_BAD_REQUEST,
                "External URLs are not served through this endpoint",
            )
        return _url_response(reference.value, as_json, signing_service.ttl)

    try:
        signed = signing_service.sign(reference.value)
    except StorageNotConfiguredError as e:
        # Degrade to an empty URL so pages render a placeholder instead of failing
        logger.warning(f"{e} - returning null URL for {reference.value}")
        return JSONResponse({"url": None}, status_code=status.HTTP_200_OK)
    except SigningError as e:
        logger.error(f"Failed to generate signed URL for {reference.value}: {e} ({e.details})")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate download link", e.details or str(e))

    logger.debug(f"Signed URL issued for {signed.key} (format={format or 'redirect'})")
    return _url_response(signed.url, as_json, signed.expires_in)


@router.post("/upload", dependencies=[Depends(require_upload_access)])
async def upload_media(
    file: Optional[UploadFile] = File(None),
    folder: Optional[str] = Form(None),
    signing_service: SigningService = Depends(get_signing_service),
):
    """
    Upload an image, audio, video or PDF file.

    Returns the canonical key to store on the content record.
    """
    if file is None or not file.filename:
        return _error(status.HTTP_400_BAD_REQUEST, "No file provided")

    max_size_bytes = config.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    # The multipart parser has already spooled the body; refuse it before pulling it into memory
    if file.size is not None and file.size > max_size_bytes:
        _, size_error = validate_file_size(file.size, max_size_bytes)
        await file.close()
        return _error(status.HTTP_400_BAD_REQUEST, size_error)

    try:
        content = await file.read()
        stored = UploadService.store(
            signing_service=signing_service,
            content=content,
            original_name=file.filename,
            content_type=file.content_type,
            folder=folder,
            allowed_types=config.ALLOWED_UPLOAD_TYPES,
            max_size_bytes=max_size_bytes,
            cache_control=config.UPLOAD_CACHE_CONTROL,
        )
    except UploadRejectedError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except StorageNotConfiguredError as e:
        logger.error(f"Upload refused: {e}")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "File storage is not configured")
    except (UploadFailedError, SigningError) as e:
        logger.error(f"Failed to upload media file: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to upload file", str(e))
    finally:
        await file.close()

    return stored.to_response()
