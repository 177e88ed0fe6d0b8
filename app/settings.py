from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",  # tolerate unknown vars if needed
    )

    app_title: str = Field("Image Metadata Service")
    root_path: str = Field("/api")
    log_level: str = Field("INFO")

    # Database
    database_url: str = Field("sqlite:///./images.db")
    db_echo: bool = Field(False)

    # Session tokens
    jwt_secret: str = Field("change-me")
    jwt_algorithm: str = Field("HS256")
    jwt_expire_minutes: int = Field(60)
    bcrypt_rounds: int = Field(10, ge=4, le=31)

    # Cloudinary
    cloudinary_cloud_name: Optional[str] = Field(None)
    cloudinary_api_key: Optional[str] = Field(None)
    cloudinary_api_secret: Optional[str] = Field(None)
    cloudinary_auto_tagging: float = Field(0.6)
    cloudinary_categorization: str = Field("google_tagging")
    cloudinary_detection: str = Field("captioning")

    # Metadata caps
    max_tags: int = Field(10)
    max_colors: int = Field(3)

    # Pagination
    default_page_limit: int = Field(12)
    max_page_limit: int = Field(500)

    cors_origin_regex: str = Field(r"^http://localhost(:\d+)?$")

settings = Settings()
