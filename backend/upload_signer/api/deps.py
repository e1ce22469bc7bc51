from fastapi import Request

from upload_signer.services.signer import UploadURLSigner


def get_url_signer(request: Request) -> UploadURLSigner:
    return request.app.state.url_signer
