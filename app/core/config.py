from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    PORT: int = 8000
    CORS_ALLOW_ORIGINS: List[str] = [""]
    API_BASE_PATH: str = "/"

    ES_HOST: str = "http://localhost:11200"
    ES_USERNAME: str | None = None
    ES_PASSWORD: str | None = None
    ES_API_KEY: str | None = None
    ES_REQUEST_TIMEOUT: int = 30

    # Alias the read path queries; physical indices are "<alias><microseconds>"
    SEARCH_INDEX: str = "ons"

    ZEBEDEE_URL: str = "http://localhost:8082"
    DATASET_API_URL: str = "http://localhost:22000"
    SERVICE_AUTH_TOKEN: Optional[str] = None

    GRACEFUL_SHUTDOWN_TIMEOUT: int = 5
    HEALTHCHECK_INTERVAL: int = 30
    HEALTHCHECK_CRITICAL_TIMEOUT: int = 90

    # Sign every ES request with AWS SigV4 (managed OpenSearch/ES domains)
    AWS_SIGNER: bool = False
    AWS_REGION: str = "eu-west-2"
    AWS_PROFILE: Optional[str] = None
    AWS_SERVICE: str = "es"
    AWS_TLS_INSECURE_SKIP_VERIFY: bool = False

    # Reindex tuning
    PAGINATION_LIMIT: int = 500
    MAX_CONCURRENT_EXTRACTIONS: int = 20
    MAX_CONCURRENT_INDEXINGS: int = 30
    TEST_SUBSET: bool = False  # only fetch one page of datasets
    IGNORE_ZEBEDEE: bool = False
    BULK_FLUSH_ITEMS: int = 500
    BULK_FLUSH_BYTES: int = 5 * 1024 * 1024

    # Allow .env file to override defaults
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
