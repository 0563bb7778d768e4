from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "presence_relay"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8080
    WS_PATH: str = "/ws"

    DEFAULT_COLOR: str = "#000000"
    SEND_QUEUE_SIZE: int = 256

settings = Settings()
