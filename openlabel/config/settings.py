from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "openlabel"
    db_username: str = "openlabel"
    db_password: str = "secret"

    ocr_provider: str = "azure"
    azure_ocr_endpoint: str = ""
    azure_ocr_key: str = ""
    azure_ocr_api_version: str = "2023-07-31"
    ocr_poll_interval_seconds: float = 1.0
    ocr_poll_max_attempts: int = 30
    ocr_http_timeout_seconds: int = 20
    tesseract_cmd: str = ""
    tesseract_lang: str = "eng"

    ocr_daily_limit: int = 0
    ocr_max_attempts: int = 3
    ocr_retry_delay_seconds: float = 2.0
    ocr_retry_backoff: str = "fixed"

    llm_provider: str = "openrouter"
    llm_api_key: str = ""
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model_name: str = "gpt-3.5-turbo:free"
    llm_timeout_seconds: int = 120
    llm_daily_limit: int = 50
    llm_max_attempts: int = 3
    llm_retry_delay_seconds: float = 4.0
    llm_retry_backoff: str = "fixed"

    image_max_attempts: int = 3
    image_retry_delay_seconds: float = 1.0

    usage_store_backend: str = "memory"
    report_store_backend: str = "file"
    reports_dir: str = "saved_reports"

    analysis_max_workers: int = 4
