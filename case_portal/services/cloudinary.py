import os
import logging
from datetime import datetime

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile, HTTPException, status

from case_portal.config import settings

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
DOCUMENT_EXTENSIONS = {".pdf", ".doc", ".docx", ".ppt", ".pptx", ".txt", ".zip"}

def cloudinary_configured() -> bool:
    return bool(settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET)

def configure_cloudinary():
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True
    )

async def upload_to_cloudinary(file: UploadFile, folder: str, allowed_extensions=None,
                               resource_type: str = "image") -> str:
    """
    Upload a file to Cloudinary and return its secure URL.

    Args:
        file: The uploaded file
        folder: The Cloudinary folder to upload to
        allowed_extensions: Accepted file extensions, images by default
        resource_type: "image" for pictures, "raw" for documents

    Raises:
        HTTPException: 503 when uploads are not configured, 400 for a
        disallowed file type, 500 when the upload fails
    """
    if not cloudinary_configured():
        logger.error("Cloudinary credentials not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="File upload service is not configured"
        )

    allowed_extensions = allowed_extensions or IMAGE_EXTENSIONS
    file_ext = os.path.splitext(file.filename)[1].lower() if file.filename else ""

    if file_ext not in allowed_extensions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed. Must be one of: {', '.join(sorted(allowed_extensions))}"
        )

    configure_cloudinary()
    contents = await file.read()
    base_name = os.path.splitext(file.filename)[0]

    try:
        options = {
            "folder": folder,
            "resource_type": resource_type,
            "public_id": f"{base_name}_{int(datetime.now().timestamp())}",
        }
        if resource_type == "image":
            options["eager"] = [{"width": 500, "crop": "scale"}]

        result = cloudinary.uploader.upload(contents, **options)
        return result["secure_url"]

    except Exception as e:
        logger.error(f"Error uploading to Cloudinary: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload file"
        )
    finally:
        await file.seek(0)

async def upload_profile_picture(file: UploadFile) -> str:
    return await upload_to_cloudinary(file, folder=f"{settings.CLOUDINARY_FOLDER}/staff")

async def upload_note_file(file: UploadFile) -> str:
    return await upload_to_cloudinary(
        file,
        folder=f"{settings.CLOUDINARY_FOLDER}/notes",
        allowed_extensions=DOCUMENT_EXTENSIONS | IMAGE_EXTENSIONS,
        resource_type="raw",
    )
