"""Application settings for oddsline."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the odds cache and its upstream source."""

    model_config = SettingsConfigDict(
        env_prefix="ODDSLINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    cache_timeout_s: float = 300.0
    cache_key: str = "cached_odds"
    data_dir: str = "data/oddsline"
    source: str = "mock"
    mock_event_count: int = 15
    odds_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("ODDS_API_KEY", "ODDSLINE_ODDS_API_KEY"),
    )
    odds_api_base_url: str = "https://api.the-odds-api.com/v4"
    odds_api_timeout_s: float = 10.0
    odds_api_sport_key: str = "upcoming"
    odds_api_regions: str = "us"
    odds_api_markets: str = "h2h"
