"""
Central feature flags. One file controls every optional integration.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the system uses a local fallback. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────────
    use_s3: bool = Field(default=False, alias="FF_USE_S3")
    # ON  → Raw uploads go to AWS S3. Needs AWS creds + S3_BUCKET_NAME.
    # OFF → Raw uploads saved under LOCAL_STORAGE_PATH.

    # ── Realtime ─────────────────────────────────────────────────────
    use_redis: bool = Field(default=False, alias="FF_USE_REDIS")
    # ON  → Document/analysis status events on Redis pub/sub. Needs REDIS_URL.
    # OFF → Notifications silently skipped.

    # ── Online search ────────────────────────────────────────────────
    use_online_search: bool = Field(default=True, alias="FF_USE_ONLINE_SEARCH")
    # ON  → Chat falls back to Perplexity when no document matches.
    #       Still needs PERPLEXITY_API_KEY; without it the branch is skipped.
    # OFF → Chat answers from persona knowledge only.

    # ── Upload pipeline ──────────────────────────────────────────────
    auto_analyze: bool = Field(default=True, alias="FF_AUTO_ANALYZE")
    # ON  → Every upload enqueues an "environmental" analysis in the background.
    # OFF → Analyses only run when /v1/analyze-document is called.

    use_pdf_extraction: bool = Field(default=False, alias="FF_USE_PDF_EXTRACTION")
    # ON  → pdfplumber / python-docx extract text from PDF and DOCX uploads.
    # OFF → PDF and Word uploads store a placeholder text.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
