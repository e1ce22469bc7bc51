from __future__ import annotations

import base64
import logging
from typing import Protocol

import google.auth
import google.auth.exceptions
import httpx
from google.auth import credentials as ga_credentials
from google.auth.transport.requests import Request as AuthRequest

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class SigningError(Exception):
    """Raised when the signing authority cannot produce a signature."""


class SigningAuthority(Protocol):
    service_account: str

    def sign_bytes(self, payload: bytes) -> bytes: ...


class IAMSigningAuthority:
    """Signs blobs with a service account key held by the IAM Credentials API.

    Calls are blocking; callers run them off the event loop.
    """

    def __init__(
        self,
        service_account: str,
        *,
        endpoint: str = "https://iamcredentials.googleapis.com",
        timeout: float = 10.0,
        credentials: ga_credentials.Credentials | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.service_account = service_account
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._credentials = credentials
        self._transport = transport

    @property
    def sign_blob_url(self) -> str:
        return f"{self.endpoint}/v1/projects/-/serviceAccounts/{self.service_account}:signBlob"

    def _access_token(self) -> str:
        try:
            if self._credentials is None:
                self._credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
            if not self._credentials.valid:
                self._credentials.refresh(AuthRequest())
        except google.auth.exceptions.GoogleAuthError as exc:
            raise SigningError(f"failed to obtain credentials: {exc}") from exc
        return self._credentials.token

    def sign_bytes(self, payload: bytes) -> bytes:
        token = self._access_token()
        body = {"payload": base64.b64encode(payload).decode("ascii")}

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = client.post(
                    self.sign_blob_url,
                    json=body,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.HTTPError as exc:
                logger.warning("signBlob request for %s failed: %s", self.service_account, exc)
                raise SigningError(f"failed to sign blob: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "signBlob for %s returned %d: %s",
                self.service_account,
                response.status_code,
                message,
            )
            raise SigningError(f"failed to sign blob: {response.status_code} {message}")

        try:
            signed_blob = response.json()["signedBlob"]
            return base64.b64decode(signed_blob, validate=True)
        except (ValueError, KeyError, TypeError) as exc:
            raise SigningError("signing authority returned an undecodable signature") from exc


class AuthoritySigningCredentials(ga_credentials.Signing):
    """Exposes a :class:`SigningAuthority` as google-auth signing credentials."""

    def __init__(self, authority: SigningAuthority) -> None:
        self.authority = authority

    @property
    def signer_email(self) -> str:
        return self.authority.service_account

    @property
    def signer(self):
        return None

    def sign_bytes(self, message: bytes) -> bytes:
        return self.authority.sign_bytes(message)


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error") or {}
        return error.get("message") or response.reason_phrase
    except (ValueError, AttributeError):
        return response.text or response.reason_phrase
