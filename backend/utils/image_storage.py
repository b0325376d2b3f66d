import os
import secrets
import time

from fastapi import HTTPException, UploadFile, status

from config.env import MAX_UPLOAD_BYTES, UPLOAD_DIR, cloudinary_enabled

PUBLIC_PREFIX = "/uploads/images"


def _unique_name(original: str | None) -> str:
    extension = (original or "").rsplit(".", 1)[-1].lower() if original and "." in original else "jpg"
    extension = "".join(ch for ch in extension if ch.isalnum())[:8] or "jpg"
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{extension}"


async def read_image(file: UploadFile) -> bytes:
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed",
        )

    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB",
        )
    return data


def store_image(data: bytes, original_name: str | None, owner_id: str) -> str:
    """
    Persist one image and return its public URL.
    Cloudinary when credentials are configured, the local upload dir otherwise.
    """
    filename = _unique_name(original_name)

    if cloudinary_enabled():
        from utils.cloudinary import upload_image

        url = upload_image(data, folder=f"haatbazar/products/{owner_id}", public_id=filename.rsplit(".", 1)[0])
        if not url:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Image upload failed",
            )
        return url

    os.makedirs(UPLOAD_DIR, exist_ok=True)
    with open(os.path.join(UPLOAD_DIR, filename), "wb") as fh:
        fh.write(data)
    return f"{PUBLIC_PREFIX}/{filename}"
