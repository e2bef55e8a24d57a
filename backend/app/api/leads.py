import io
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, status

from app.api.pagination import PageParams, page_envelope, page_params
from app.core.middleware import get_current_user
from app.db.models import LeadUpload, User
from app.schemas.lead import LeadUploadResponse
from app.services.lead_parser import (
    ALLOWED_EXTENSIONS,
    LeadFileError,
    file_extension,
    parse_leads,
)
from app.services.lead_uploads import LeadUploadRepository, get_lead_upload_repository

logger = logging.getLogger(__name__)

router = APIRouter()

# warnings stored per upload
_MAX_WARNINGS = 100


def _to_response(upload: LeadUpload) -> LeadUploadResponse:
    return LeadUploadResponse(
        id=upload.id,
        file_name=upload.file_name,
        lead_source=upload.lead_source,
        total_leads=upload.total_leads,
        uploaded_by=upload.uploaded_by,
        upload_date=upload.upload_date,
        warnings=(upload.logs or {}).get("warnings", []),
    )


@router.post(
    "/upload",
    response_model=LeadUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a lead spreadsheet",
)
async def upload_leads(
    file: UploadFile,
    lead_source: str = Form(...),
    uploads: LeadUploadRepository = Depends(get_lead_upload_repository),
    current_user: User = Depends(get_current_user),
) -> LeadUploadResponse:
    ext = file_extension(file.filename)
    logger.info("Lead upload: '%s' (extension '%s', user %s)", file.filename, ext, current_user.id)

    source = lead_source.strip()
    if not source:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Lead source must not be empty",
        )

    if ext not in ALLOWED_EXTENSIONS:
        logger.warning("Rejected lead file '%s': unsupported extension '%s'", file.filename, ext)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    content = await file.read()
    try:
        total_leads, warnings = parse_leads(io.BytesIO(content), file.filename)
    except LeadFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    upload = await uploads.add(
        LeadUpload(
            user_id=current_user.id,
            file_name=file.filename or "unknown",
            lead_source=source,
            total_leads=total_leads,
            uploaded_by=current_user.display_name,
            logs={"warnings": warnings[:_MAX_WARNINGS]},
        )
    )
    return _to_response(upload)


@router.get(
    "/",
    summary="List lead uploads (paginated, newest first)",
)
async def list_lead_uploads(
    paging: PageParams = Depends(page_params),
    uploads: LeadUploadRepository = Depends(get_lead_upload_repository),
    current_user: User = Depends(get_current_user),
) -> dict:
    owner = None if current_user.is_admin else current_user.id
    total, items = await uploads.history(owner, paging.offset, paging.per_page)
    return page_envelope(paging, total, [_to_response(u) for u in items])
