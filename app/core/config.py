from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="UT Vibe")
    app_description: str = Field(default="Campus moments, real-time")
    app_version: str = Field(default="1.0.0")
    app_url: str = Field(default="http://localhost:8000")
    debug: bool = Field(default=True)
    production: bool = Field(default=False)

    # Database Configuration
    # DATABASE_URL wins over the individual postgres fields when set
    database_url: Optional[str] = Field(default=None)
    db_host: str = Field(default="127.0.0.1")
    db_port: int = Field(default=5432)
    db_database: str = Field(default="ut_vibe")
    db_username: str = Field(default="postgres")
    db_password: str = Field(default="postgres")

    # Security Settings
    cors_allowed_origins: List[str] = Field(default=["http://localhost:3000"])
    password_min_length: int = Field(default=8)

    # JWT Configuration
    jwt_secret: str = Field(default="your-secret-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_user_expiration: int = Field(default=7)
    jwt_issuer: str = Field(default="UT Vibe")

    # Email (SMTP)
    mail_host: str = Field(default="smtp.gmail.com")
    mail_port: int = Field(default=587)
    mail_username: str = Field(default="")
    mail_password: str = Field(default="")
    mail_encryption: str = Field(default="tls")
    mail_from_address: str = Field(default="no-reply@utvibe.app")
    mail_from_name: str = Field(default="UT Vibe")
    mail_timeout: int = Field(default=10)

    # One-time codes
    otp_length: int = Field(default=6)
    otp_expiration_minutes: int = Field(default=10)

    # Posts
    post_lifetime_days: int = Field(default=7)
    max_images_per_post: int = Field(default=10)
    post_categories: List[str] = Field(
        default=[
            "event",
            "gathering",
            "lost-found",
            "food",
            "sports",
            "music",
            "study",
            "celebration",
            "club",
            "other",
        ]
    )

    # File Uploads
    upload_dir: str = Field(default="storage")
    max_upload_size_mb: int = Field(default=5)

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_storage_uri: str = Field(default="memory://")
    rate_limit_default: str = Field(default="100/minute")
    otp_rate_limit: str = Field(default="5/minute")

    # Expired post cleanup
    cleanup_enabled: bool = Field(default=True)
    cleanup_retention_days: int = Field(default=30)
    cleanup_interval_minutes: int = Field(default=60)

    # Pagination
    default_page_size: int = Field(default=20)
    max_page_size: int = Field(default=100)

    # Admin Defaults
    admin_default_name: str = Field(default="UT Vibe Admin")
    admin_default_email: str = Field(default="admin@utvibe.app")
    admin_default_password: str = Field(default="Admin@123")

    # ============================
    # Generic comma-separated parser
    # ============================
    @staticmethod
    def _parse_csv(value, default):
        if isinstance(value, str):
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default
        if isinstance(value, list):
            return value
        return default

    @field_validator("cors_allowed_origins", mode="before")
    def validate_cors(cls, v):
        return cls._parse_csv(v, ["http://localhost:3000"])

    @field_validator("post_categories", mode="before")
    def validate_categories(cls, v):
        return cls._parse_csv(v, ["other"])

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return "postgresql+psycopg2://{user}:{password}@{host}:{port}/{database}".format(
            user=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings():
    try:
        settings = Settings()
        print("✅ Settings loaded successfully!")
        return settings
    except ValidationError as e:
        print("❌ Validation Error:", e)
        raise


settings = load_settings()
