"""
Core configuration for the Video Upload API.
Manages environment variables, asset provider and AWS service settings.
"""
import os
from typing import List
from pydantic_settings import BaseSettings
from src.core.parameter_store import resolve_secret


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # AWS Configuration
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    videos_table_name: str = os.getenv("VIDEOS_TABLE_NAME", "")

    # API Configuration
    api_title: str = os.getenv("API_TITLE", "Video Upload API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")

    # Asset Provider Configuration
    asset_cloud_name: str = os.getenv("ASSET_CLOUD_NAME", "")
    asset_api_key: str = os.getenv("ASSET_API_KEY", "")
    asset_api_secret_key: str = os.getenv("ASSET_API_SECRET_KEY", "")
    asset_api_secret_parameter: str = os.getenv("ASSET_API_SECRET_PARAMETER", "")
    asset_api_base_url: str = os.getenv("ASSET_API_BASE_URL", "https://api.cloudinary.com/v1_1")
    asset_delivery_base_url: str = os.getenv("ASSET_DELIVERY_BASE_URL", "https://res.cloudinary.com")
    asset_video_folder: str = os.getenv("ASSET_VIDEO_FOLDER", "yt/videos")
    asset_thumbnail_folder: str = os.getenv("ASSET_THUMBNAIL_FOLDER", "yt/thumbnails")
    asset_timeout_seconds: float = float(os.getenv("ASSET_TIMEOUT_SECONDS", "120"))

    # Upload Progress
    upload_status_ttl_seconds: int = int(os.getenv("UPLOAD_STATUS_TTL_SECONDS", "1800"))

    # File Upload Limits
    temp_upload_dir: str = os.getenv("TEMP_UPLOAD_DIR", os.path.join(os.getcwd(), "storage", "tmp-uploads"))
    max_video_size_mb: int = int(os.getenv("MAX_VIDEO_SIZE_MB", "500"))
    max_thumbnail_size_mb: int = int(os.getenv("MAX_THUMBNAIL_SIZE_MB", "10"))

    # Roles
    allowed_uploader_roles_str: str = "SUPER_ADMIN,MINI_ADMIN"
    operator_roles_str: str = "SUPER_ADMIN"

    # Authentication
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "dev-secret-change-in-production")
    jwt_secret_parameter: str = os.getenv("JWT_SECRET_PARAMETER", "")
    auth_cookie_name: str = os.getenv("AUTH_COOKIE_NAME", "yt_auth_token")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    slow_request_ms: int = int(os.getenv("SLOW_REQUEST_MS", "1200"))

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "dev")

    @property
    def jwt_secret(self) -> str:
        """JWT signing key, from Parameter Store when a parameter name is configured."""
        return resolve_secret(self.jwt_secret_parameter, self.jwt_secret_key, self.aws_region)

    @property
    def asset_api_secret(self) -> str:
        """Asset provider API secret, from Parameter Store when a parameter name is configured."""
        return resolve_secret(self.asset_api_secret_parameter, self.asset_api_secret_key, self.aws_region)

    @property
    def allowed_uploader_roles(self) -> List[str]:
        """Parse roles permitted to upload videos."""
        roles_str = os.getenv("ALLOWED_UPLOADER_ROLES", self.allowed_uploader_roles_str)
        return [role.strip() for role in roles_str.split(",") if role.strip()]

    @property
    def operator_roles(self) -> List[str]:
        """Parse roles permitted to read any upload session."""
        roles_str = os.getenv("OPERATOR_ROLES", self.operator_roles_str)
        return [role.strip() for role in roles_str.split(",") if role.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
