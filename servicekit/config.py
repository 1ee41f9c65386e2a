from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Verbosity; "debug" switches on the logging decorator
    LOG_LEVEL: str = "info"

    # Tracing resource + export
    SERVICE_NAME: str = "servicekit"
    APPLICATION_NAME: str = "servicekit"
    EXPORTER_URL: str = ""
    CONSOLE_SPANS: bool = False

    # Sanitizer
    REDACTED_FIELDS: list[str] = ["userToken", "user_token"]
    MAX_LOGGED_ITEMS: int = 30

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def debug_enabled(self) -> bool:
        return self.LOG_LEVEL.lower() == "debug"


settings = Settings()
