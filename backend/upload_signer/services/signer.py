"""V4 signed URLs for direct uploads to Cloud Storage.

The storage SDK builds the canonical request and string-to-sign; the
signature itself comes from a :class:`SigningAuthority`, so the service
never holds a private key.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Final
from urllib.parse import parse_qs, urlsplit

from google.cloud import storage

from upload_signer.services.keys import KeyGenerator
from upload_signer.services.signing import AuthoritySigningCredentials, SigningAuthority

logger = logging.getLogger(__name__)

UPLOAD_METHOD: Final[str] = "PUT"
UPLOAD_URL_TTL: Final[timedelta] = timedelta(minutes=10)


@dataclass(frozen=True)
class SignerConfig:
    bucket: str
    storage_host: str = "storage.googleapis.com"


@dataclass(frozen=True)
class SignedUpload:
    url: str
    object_path: str
    expires_at: datetime


def _expires_at(url: str) -> datetime:
    query = parse_qs(urlsplit(url).query)
    issued_at = datetime.strptime(query["X-Goog-Date"][0], "%Y%m%dT%H%M%SZ")
    ttl = timedelta(seconds=int(query["X-Goog-Expires"][0]))
    return issued_at.replace(tzinfo=timezone.utc) + ttl


class UploadURLSigner:
    def __init__(
        self,
        config: SignerConfig,
        authority: SigningAuthority,
        keys: KeyGenerator,
        client: storage.Client | None = None,
    ) -> None:
        self.config = config
        self.authority = authority
        self.keys = keys
        # Anonymous client; signatures come from the authority.
        self.client = client or storage.Client.create_anonymous_client()
        self.bucket = self.client.bucket(config.bucket)

    def _sign(self, path: str, content_type: str) -> str:
        blob = self.bucket.blob(path)
        return blob.generate_signed_url(
            version="v4",
            method=UPLOAD_METHOD,
            expiration=UPLOAD_URL_TTL,
            content_type=content_type or None,
            credentials=AuthoritySigningCredentials(self.authority),
            api_access_endpoint=f"https://{self.config.storage_host}",
        )

    async def issue_upload_url(self, content_type: str) -> SignedUpload:
        """Return a URL that authorizes one PUT of ``content_type`` for ten minutes.

        Raises :class:`SigningError` when the signing authority fails; the
        generated object path is discarded in that case.
        """
        path = self.keys.next_object_path(content_type)
        url = await asyncio.to_thread(self._sign, path, content_type)
        logger.info("issued upload url for %s", path)
        return SignedUpload(url=url, object_path=path, expires_at=_expires_at(url))
