"""
Document OCR endpoints (PAN card and cheque).
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, Request, UploadFile

from kycgate.api import audit
from kycgate.api.dependencies import CallerId, Service
from kycgate.api.schemas import ApiResponse
from kycgate.domain.errors import MalformedInputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr/v1", tags=["ocr"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/jpg", "image/webp"}


async def _read_image(upload: UploadFile) -> tuple[bytes, str]:
    """Read an upload, rejecting media types the OCR providers cannot take."""
    media_type = (upload.content_type or "").split(";")[0].strip().lower()
    if media_type not in ALLOWED_IMAGE_TYPES:
        raise MalformedInputError("Only JPEG, PNG and WEBP images are allowed")
    content = await upload.read()
    if not content:
        raise MalformedInputError("Image file is required")
    return content, media_type


@router.post("/pan", response_model=ApiResponse)
async def pan_ocr(
    request: Request,
    caller_id: CallerId,
    service: Service,
    image: Annotated[UploadFile, File(alias="imageUrl", description="PAN card image")],
) -> ApiResponse:
    """
    Extract PAN number, name, date of birth and father's name from a PAN card image.

    Fields guessed from layout rather than labels are listed under
    `provenance` as positional_guess and should be reviewed.
    """
    content, media_type = await _read_image(image)
    audit.note(request, payload={"filename": image.filename, "contentType": media_type, "size": len(content)})

    result = await service.extract_from_image(content, media_type, image.filename)

    data = None
    if result.fields is not None and result.verified:
        data = {
            **result.fields.to_dict(),
            "provenance": result.fields.provenance_map(),
        }
    response = ApiResponse.from_result(result, data=data)
    if response.success:
        response.message = "PAN details extracted successfully"
    audit.note(request, response={"success": response.success, "provider": response.provider}, success=response.success)
    return response


@router.post("/cheque", response_model=ApiResponse)
async def cheque_ocr(
    request: Request,
    caller_id: CallerId,
    service: Service,
    image: Annotated[UploadFile, File(alias="imageUrl", description="Cheque image")],
    client_ref_id: Annotated[str, Form(alias="clientRefId")],
    account_holder_name: Annotated[str | None, Form(alias="accountHolderName")] = None,
    is_complete_image: Annotated[str, Form(alias="isCompleteImage")] = "yes",
) -> ApiResponse:
    """Extract account number, IFSC and cheque details from a cheque image."""
    content, media_type = await _read_image(image)
    audit.note(request, payload={
        "filename": image.filename,
        "contentType": media_type,
        "size": len(content),
        "clientRefId": client_ref_id,
    })

    result = await service.extract_cheque(
        content,
        media_type,
        client_ref_id=client_ref_id,
        account_holder_name=account_holder_name,
        is_complete_image=is_complete_image.strip().lower() not in {"no", "false", "0"},
        filename=image.filename,
    )

    response = ApiResponse.from_result(result)
    audit.note(request, response={"success": response.success, "provider": response.provider}, success=response.success)
    return response
