# backend/routes/uploads.py

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from typing import List

from utils.image_storage import read_image, store_image
from utils.security import get_current_user

router = APIRouter(prefix="/upload", tags=["Uploads"])

MAX_FILES_PER_REQUEST = 5


# =========================
# UPLOAD PRODUCT IMAGES
# =========================
@router.post("/images")
async def upload_images(
    files: List[UploadFile] = File(...),
    user=Depends(get_current_user),
):
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files uploaded",
        )
    if len(files) > MAX_FILES_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {MAX_FILES_PER_REQUEST} images per upload",
        )

    # validate everything before storing anything
    payloads = [(f, await read_image(f)) for f in files]

    uploaded = []
    for file, data in payloads:
        url = store_image(data, file.filename, user["_id"])
        uploaded.append({
            "filename": url.rsplit("/", 1)[-1],
            "url": url,
            "size": len(data),
            "type": file.content_type,
        })

    # nothing is saved on the product here;
    # the client sends these URLs with product create/update
    return {
        "message": "Images uploaded successfully",
        "files": uploaded,
    }
