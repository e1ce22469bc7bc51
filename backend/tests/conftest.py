import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from upload_signer.core.config import get_settings
from upload_signer.services import storage as storage_service
from upload_signer.services.keys import KeyGenerator
from upload_signer.services.signer import SignerConfig, UploadURLSigner
from upload_signer.services.signing import SigningError

SERVICE_ACCOUNT = "test-project@appspot.gserviceaccount.com"


class FakeSigningAuthority:
    def __init__(
        self,
        signature: bytes = b"\x01\x02\xab\xcd",
        error: Exception | None = None,
    ) -> None:
        self.service_account = SERVICE_ACCOUNT
        self.signature = signature
        self.error = error
        self.payloads: list[bytes] = []

    def sign_bytes(self, payload: bytes) -> bytes:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.signature


@pytest.fixture(scope="session", autouse=True)
def configure_environment():
    os.environ["ENV"] = "test"
    os.environ["GOOGLE_CLOUD_PROJECT"] = "test-project"
    os.environ["ENSURE_BUCKET"] = "false"
    get_settings.cache_clear()
    storage_service.reset_storage_service()


@pytest.fixture
def signer_config():
    return SignerConfig(bucket="test-project")


@pytest.fixture
def authority():
    return FakeSigningAuthority()


@pytest.fixture
def url_signer(signer_config, authority):
    return UploadURLSigner(signer_config, authority, KeyGenerator(seed=42))


@pytest.fixture
def app_instance(configure_environment, url_signer):
    from upload_signer.main import create_app

    app = create_app()
    # ASGITransport skips the lifespan, so install the signer directly
    app.state.url_signer = url_signer
    return app


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


def signing_failure(message: str) -> FakeSigningAuthority:
    return FakeSigningAuthority(error=SigningError(message))
