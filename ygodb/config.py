from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="YGODB_")

    app_name: str = "ygodb"

    base_url: str = "https://www.db.yugioh-card.com/yugiohdb"
    locale: str = "ja"
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    http_timeout: float = 30.0

    # Optional Netscape cookies.txt used instead of a fresh session
    cookie_file: Path | None = None

    results_per_page: int = 100

    # Politeness delay between consecutive requests (seconds).
    # Equal min/max gives a fixed delay, otherwise a uniform random jitter.
    request_delay_min: float = 1.0
    request_delay_max: float = 1.0

    # The full FAQ crawl issues ~12k detail requests and uses a wider jitter
    faq_full_delay_min: float = 1.0
    faq_full_delay_max: float = 3.0

    data_dir: Path = Path("output/data")
    checkpoint_dir: Path = Path("output/.temp")
    checkpoint_interval: int = 1000

    # Consecutive known-and-unchanged ids before an incremental crawl stops
    card_stop_threshold: int = 1
    faq_stop_threshold: int = 5

    @model_validator(mode="after")
    def _check_delays(self) -> "Settings":
        if self.request_delay_max < self.request_delay_min:
            raise ValueError("request_delay_max must be >= request_delay_min")
        if self.faq_full_delay_max < self.faq_full_delay_min:
            raise ValueError("faq_full_delay_max must be >= faq_full_delay_min")
        return self


settings = Settings()


# =============================================================================
# DATASET FILES
# =============================================================================

CARDS_FILENAME = "cards-all.tsv"
FAQ_FILENAME = "faq-all.tsv"
DETAILS_FILENAME = "details-all.tsv"
FAQ_IDS_FILENAME = "faqid-all.tsv"

# Sort orders used by the site's listing pages
CARD_SORT_NEWEST_RELEASE = 21
FAQ_SORT_NEWEST_UPDATE = 2
