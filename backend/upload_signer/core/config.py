from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")

    project_id: str = Field(default="", alias="GOOGLE_CLOUD_PROJECT")
    upload_bucket: str | None = Field(default=None, alias="UPLOAD_BUCKET")
    signer_service_account: str | None = Field(default=None, alias="SIGNER_SERVICE_ACCOUNT")

    storage_host: str = Field(default="storage.googleapis.com", alias="STORAGE_HOST")
    iam_endpoint: HttpUrl = Field(
        default="https://iamcredentials.googleapis.com",
        alias="IAM_ENDPOINT",
    )
    signing_timeout: float = Field(default=10.0, alias="SIGNING_TIMEOUT")

    ensure_bucket: bool = Field(default=True, alias="ENSURE_BUCKET")

    @property
    def bucket_name(self) -> str:
        return self.upload_bucket or self.project_id

    @property
    def signer_email(self) -> str:
        if self.signer_service_account:
            return self.signer_service_account
        return f"{self.project_id}@appspot.gserviceaccount.com"


@lru_cache
def get_settings() -> Settings:
    return Settings()
