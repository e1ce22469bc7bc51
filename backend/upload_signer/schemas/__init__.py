from upload_signer.schemas.upload import UploadRequest, UploadResponse

__all__ = [
    "UploadRequest",
    "UploadResponse",
]
