from typing import Any
from fastapi import APIRouter, Depends, File, UploadFile

from app import models, schemas
from app.api import deps
from app.core.monitoring import metrics
from app.services.uploads import save_image

router = APIRouter()


@router.post("/image", response_model=schemas.UploadResult, status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """Store an offer or business image and return its public URL"""
    filename, url = await save_image(file)
    metrics.increment("uploads.images")
    return {"url": url, "filename": filename}
