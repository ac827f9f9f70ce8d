from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    service_port: int = 17020
    service_host: str = "127.0.0.1"

    # CORS
    cors_origins: str = "http://localhost:1420"

    # App metadata
    app_name: str = "ncmdump-service"
    app_version: str = "0.1.0"

    # Picker
    ncm_extension: str = "ncm"
    picker_filter_name: str = "NCM Files"

    # Dump
    default_output_dir: str | None = None
    write_tags: bool = True

    # Completion announcement
    completion_message: str = "All files have been dumped!"
    completion_title: str = "Success"
    notification_history: int = 50

    # Logging
    log_level: str = "INFO"

    # Admin
    admin_api_key: str = ""  # Empty = dump endpoint locked (fail-closed)

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
