"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # External Services
    compliance_api_base: str = "http://127.0.0.1:8001"
    compliance_api_key: str = ""

    # Service
    service_name: str = "onboarding-engine"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Shown to the applicant when submission fails; retrying is allowed
    submission_error_message: str = "Something went wrong while submitting your application. Please try again."


settings = Settings()
