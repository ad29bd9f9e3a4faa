import logging
import time

import database
import secrets_manager

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
DEFAULT_BUCKET = "merchant-assets"


class InvalidUploadError(ValueError):
    pass


def _bucket():
    return secrets_manager.get_secret("supabase.bucket", DEFAULT_BUCKET)

def validate_image(uploaded_file):
    """
    Client-side checks before anything is sent: image MIME type, 5MB ceiling.
    Accepts a Streamlit UploadedFile (or anything with .type and .size).
    """
    content_type = getattr(uploaded_file, "type", "") or ""
    if not content_type.startswith("image/"):
        raise InvalidUploadError("Please select an image file")
    if getattr(uploaded_file, "size", 0) > MAX_IMAGE_BYTES:
        raise InvalidUploadError("File size must be less than 5MB")

def asset_path(folder, merchant_id, filename):
    """products/<merchant>/<millis>_<name>"""
    return f"{folder}/{merchant_id}/{int(time.time() * 1000)}_{filename}"

def upload_file(file_bytes, storage_path, content_type="application/octet-stream"):
    """
    Uploads bytes to the merchant assets bucket.
    Returns: public URL (str)
    """
    try:
        bucket = database.get_client().storage.from_(_bucket())
        bucket.upload(
            path=storage_path,
            file=file_bytes,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        return bucket.get_public_url(storage_path)
    except Exception as e:
        logger.error(f"File upload failed: {e}")
        raise

def delete_file(storage_path):
    try:
        database.get_client().storage.from_(_bucket()).remove([storage_path])
    except Exception as e:
        logger.error(f"File deletion failed: {e}")
        raise

def upload_then_save(uploaded_file, storage_path, save, optional=False):
    """
    Uploads, then calls save(public_url). If the save fails the uploaded file
    is removed again and the save error is re-raised.

    With optional=True a failed upload is logged and save(None) runs anyway.
    """
    validate_image(uploaded_file)
    try:
        url = upload_file(uploaded_file.getvalue(), storage_path, uploaded_file.type)
    except Exception as e:
        if not optional:
            raise
        logger.warning(f"Upload failed, continuing without file: {e}")
        return save(None)

    try:
        return save(url)
    except Exception:
        logger.warning(f"Save failed after upload; removing {storage_path}")
        try:
            delete_file(storage_path)
        except Exception as cleanup_error:
            logger.error(f"Orphaned upload left at {storage_path}: {cleanup_error}")
        raise
