import tempfile

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Publisher settings loaded from environment."""

    # Service
    service_name: str = "social-publisher"
    log_level: str = "INFO"
    log_json: bool = True

    # Meta API (Facebook, Instagram)
    facebook_token: str = ""  # Page token, shared with Instagram
    facebook_page_id: str = ""
    instagram_account_id: str = ""
    graph_api_version: str = "v24.0"

    # LinkedIn API
    linkedin_token: str = ""

    # TikTok Content Posting API
    tiktok_token: str = ""
    tiktok_privacy_level: str = "SELF_ONLY"

    # Network bounds
    http_timeout_seconds: float = 30.0
    upload_timeout_seconds: float = 300.0

    # Instagram container processing
    instagram_settle_seconds: float = 10.0
    instagram_status_checks: int = 5
    instagram_poll_interval_seconds: float = 3.0

    # Media hosting / staging
    base_url: str = "http://localhost:3000"
    upload_dir: str = "./uploads"
    temp_dir: str = tempfile.gettempdir()
    max_image_upload_mb: int = 10
    max_video_upload_mb: int = 500

    # Publish jobs
    idempotency_ttl_seconds: int = 86400

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
