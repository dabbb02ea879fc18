from typing import Optional

from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", protected_namespaces=())
    bot_token: Optional[str] = Field(None, validation_alias=AliasChoices("BOT_TOKEN", "bot_token"))
    model_backend: str = Field("tfjs", validation_alias=AliasChoices("MODEL_BACKEND", "model_backend"))  # tfjs|keras
    model_path: str = Field("model/model.json", validation_alias=AliasChoices("MODEL_PATH", "model_path"))
    catalog_source: str = Field("data/makeup_data.json", validation_alias=AliasChoices("CATALOG_SOURCE", "catalog_source"))  # path or http(s) URL
    page_size: int = Field(4, ge=1, validation_alias=AliasChoices("PAGE_SIZE", "page_size"))
    camera_index: int = Field(0, validation_alias=AliasChoices("CAMERA_INDEX", "camera_index"))
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
