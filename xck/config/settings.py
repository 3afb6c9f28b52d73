from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings sourced from .env files and XCK_ environment variables."""

    log_level: str = "INFO"

    output_encoding: str = "utf-8"
    csv_delimiter: str = ","

    keep_intermediate: bool = False

    class Config:
        env_prefix = "XCK_"
        env_file = ".env", ".env.local"
        env_file_encoding = "utf-8"
        extra = "ignore"

settings = Settings()
