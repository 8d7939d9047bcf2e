from pydantic_settings import BaseSettings

DEFAULT_SEARCH_QUERY = "is:issue is:open label:bounty"


class Settings(BaseSettings):
    github_token: str = ""
    github_api_base: str = "https://api.github.com"
    db_path: str = "data/bounty_board.db"

    fetch_per_page: int = 100
    fetch_max_pages: int = 2
    page_delay: float = 0.25
    rate_limit_low_watermark: int = 10
    rate_limit_backoff: float = 1.0

    fetch_comments: bool = False
    language_lookup_delay: float = 0.25
    language_cache_ttl_seconds: float = 86400

    min_score_threshold: int = 30
    sync_batch_size: int = 50
    sync_batch_delay: float = 0.05

    refresh_timeout_seconds: float = 120
    scheduler_enabled: bool = True
    refresh_interval_minutes: int = 60

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": ""}


settings = Settings()
