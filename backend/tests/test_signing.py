import base64
import json

import httpx
import pytest
from google.auth.credentials import Signing
from google.oauth2.credentials import Credentials

from conftest import SERVICE_ACCOUNT, FakeSigningAuthority
from upload_signer.services.signing import AuthoritySigningCredentials, IAMSigningAuthority, SigningError


def make_authority(handler) -> IAMSigningAuthority:
    return IAMSigningAuthority(
        SERVICE_ACCOUNT,
        credentials=Credentials(token="test-token"),
        transport=httpx.MockTransport(handler),
    )


def test_sign_bytes_round_trips_through_sign_blob():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"keyId": "k1", "signedBlob": base64.b64encode(b"signature").decode()},
        )

    signature = make_authority(handler).sign_bytes(b"string to sign")

    assert signature == b"signature"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == (
        "https://iamcredentials.googleapis.com/v1/projects/-/serviceAccounts/"
        f"{SERVICE_ACCOUNT}:signBlob"
    )
    assert request.headers["Authorization"] == "Bearer test-token"
    assert json.loads(request.content) == {
        "payload": base64.b64encode(b"string to sign").decode()
    }


def test_error_response_raises_signing_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"error": {"code": 403, "message": "Permission 'iam.serviceAccounts.signBlob' denied"}},
        )

    with pytest.raises(SigningError, match="403 Permission 'iam.serviceAccounts.signBlob' denied"):
        make_authority(handler).sign_bytes(b"payload")


def test_transport_failure_raises_signing_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SigningError, match="connection refused"):
        make_authority(handler).sign_bytes(b"payload")


@pytest.mark.parametrize(
    "body",
    [
        {"signedBlob": "***not base64***"},
        {"keyId": "k1"},
    ],
)
def test_undecodable_signature_raises_signing_error(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(SigningError, match="undecodable signature"):
        make_authority(handler).sign_bytes(b"payload")


def test_signing_credentials_delegate_to_authority():
    authority = FakeSigningAuthority(signature=b"sig")
    credentials = AuthoritySigningCredentials(authority)

    assert isinstance(credentials, Signing)
    assert credentials.signer_email == SERVICE_ACCOUNT
    assert credentials.sign_bytes(b"message") == b"sig"
    assert authority.payloads == [b"message"]
