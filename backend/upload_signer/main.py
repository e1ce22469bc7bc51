import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import PlainTextResponse

from upload_signer.api.routers import upload as upload_router
from upload_signer.core.config import Settings, get_settings
from upload_signer.core.logging import configure_logging
from upload_signer.services.keys import KeyGenerator
from upload_signer.services.signer import SignerConfig, UploadURLSigner
from upload_signer.services.signing import IAMSigningAuthority, SigningError
from upload_signer.services.storage import get_storage_service

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
}


def build_url_signer(settings: Settings) -> UploadURLSigner:
    authority = IAMSigningAuthority(
        settings.signer_email,
        endpoint=str(settings.iam_endpoint),
        timeout=settings.signing_timeout,
    )
    config = SignerConfig(
        bucket=settings.bucket_name,
        storage_host=settings.storage_host,
    )
    return UploadURLSigner(config, authority, KeyGenerator())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.ensure_bucket:
        await asyncio.to_thread(get_storage_service().ensure_bucket_exists)
    app.state.url_signer = build_url_signer(settings)
    yield


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "invalid request body"


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return PlainTextResponse(_validation_message(exc), status_code=status.HTTP_400_BAD_REQUEST)


async def signing_error_handler(request: Request, exc: SigningError):
    return PlainTextResponse(
        str(exc) or "failed to sign upload url",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def response_validation_handler(request: Request, exc: ResponseValidationError):
    logger.error("failed to encode response for %s: %s", request.url.path, exc)
    return PlainTextResponse(
        "failed to encode response",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        debug=settings.debug,
        title="Upload Signer API",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def cors_headers(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("unhandled error for %s %s", request.method, request.url.path)
            response = PlainTextResponse(
                "internal server error",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        response.headers.update(CORS_HEADERS)
        return response

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SigningError, signing_error_handler)
    app.add_exception_handler(ResponseValidationError, response_validation_handler)

    app.include_router(upload_router.router)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
