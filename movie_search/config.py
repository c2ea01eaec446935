from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    OMDB_API_KEY: Optional[str] = None
    OMDB_BASE_URL: str = 'https://www.omdbapi.com/'
    HTTP_TIMEOUT: float = 10.0
    DEBOUNCE_SECONDS: float = 0.3
    LOG_LEVEL: str = 'INFO'

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"
    )


settings = Settings()
