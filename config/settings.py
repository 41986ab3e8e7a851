from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Rocket.Chat
    rocket_email: str = ""
    rocket_password: str = ""
    rocket_server_url: str = "http://localhost:3000"
    rocket_bot_username: str = ""
    # Logs every realtime frame at DEBUG
    rocket_debug: bool = False

    # Bot
    bot_name: str = "rocket-relay"

    # Logging
    log_dir: str = str(BASE_DIR / "logs")


settings = Settings()
