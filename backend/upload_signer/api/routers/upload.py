from fastapi import APIRouter, Depends, Response, status

from upload_signer.api.deps import get_url_signer
from upload_signer.schemas import UploadRequest, UploadResponse
from upload_signer.services.signer import UploadURLSigner

router = APIRouter(tags=["upload"])


@router.options("/upload")
async def upload_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)


@router.post("/upload", response_model=UploadResponse)
async def issue_upload_url(
    payload: UploadRequest,
    signer: UploadURLSigner = Depends(get_url_signer),
) -> dict[str, str]:
    # SigningError is turned into a 500 by the app-level handler.
    signed = await signer.issue_upload_url(payload.content_type)
    return {"url": signed.url}
