"""
Yu-Gi-Oh! OCG card database client.

Fetches card search listings, FAQ listings, FAQ detail pages and the per-card
FAQ pages holding supplementary rulings. Every request goes through one
cookie-holding httpx client; the site only serves listing pages to a session
that first visited the FAQ search page.

Note: Web scraping is inherently fragile. Page structure may change.
"""

import logging
from http.cookiejar import LoadError, MozillaCookieJar
from pathlib import Path
from typing import Any

import httpx

from ygodb.config import (
    CARD_SORT_NEWEST_RELEASE,
    FAQ_SORT_NEWEST_UPDATE,
    Settings,
    settings,
)
from ygodb.services.pacing import RequestPacer

logger = logging.getLogger(__name__)

CARD_SEARCH_PATH = "card_search.action"
FAQ_SEARCH_PATH = "faq_search.action"


class FetchError(Exception):
    """A page could not be fetched."""


class SessionError(Exception):
    """No usable session could be established."""


def load_cookie_file(path: Path) -> MozillaCookieJar:
    """
    Load a Netscape cookies.txt file.

    Raises:
        SessionError: If the file is missing or malformed
    """
    if not path.exists():
        raise SessionError(f"Cookie file not found at {path}")

    jar = MozillaCookieJar(str(path))
    try:
        jar.load(ignore_discard=True, ignore_expires=True)
    except (LoadError, OSError) as e:
        raise SessionError(f"Could not read cookie file {path}: {e}") from e
    return jar


class YugiohDbClient:
    """
    Sequential client for the card database.

    Args:
        config: Settings to use, defaults to the global settings
        pacer: Delay between consecutive requests, defaults to the configured one
        client: Optional httpx client (tests pass one with a mock transport)
    """

    def __init__(
        self,
        config: Settings | None = None,
        pacer: RequestPacer | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or settings
        self.pacer = pacer or RequestPacer(
            self.config.request_delay_min, self.config.request_delay_max
        )
        self._client = client or httpx.Client(
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
            timeout=self.config.http_timeout,
        )

    def __enter__(self) -> "YugiohDbClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def cookie_count(self) -> int:
        return len(self._client.cookies.jar)

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path}"

    def _get(self, path: str, params: dict[str, Any]) -> str:
        self.pacer.wait()
        url = self._url(path)
        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"GET {url} {params} failed: {e}") from e
        return response.text

    def establish_session(self) -> int:
        """
        Obtain session cookies.

        Uses the configured cookie file when there is one, otherwise visits
        the FAQ search page.

        Returns:
            Number of cookies held

        Raises:
            SessionError: If the cookie file is missing or no cookie was obtained
        """
        if self.config.cookie_file is not None:
            for cookie in load_cookie_file(self.config.cookie_file):
                self._client.cookies.jar.set_cookie(cookie)
            logger.info("Loaded %d cookies from %s", self.cookie_count, self.config.cookie_file)
        else:
            logger.info("Establishing session...")
            try:
                self._get(FAQ_SEARCH_PATH, {"ope": 1, "request_locale": self.config.locale})
            except FetchError as e:
                raise SessionError(f"Session request failed: {e}") from e

        if self.cookie_count == 0:
            raise SessionError("No session cookies received")

        logger.info("Session established (%d cookies)", self.cookie_count)
        return self.cookie_count

    def fetch_card_list_page(self, page: int) -> str:
        """Card search results, newest release first."""
        return self._get(
            CARD_SEARCH_PATH,
            {
                "ope": 1,
                "sess": 1,
                "rp": self.config.results_per_page,
                "mode": "",
                "sort": CARD_SORT_NEWEST_RELEASE,
                "keyword": "",
                "stype": 1,
                "othercon": 2,
                "request_locale": self.config.locale,
                "page": page,
            },
        )

    def fetch_faq_list_page(self, page: int) -> str:
        """FAQ search results, most recently updated first."""
        return self._get(
            FAQ_SEARCH_PATH,
            {
                "ope": 2,
                "stype": 2,
                "keyword": "",
                "tag": -1,
                "sort": FAQ_SORT_NEWEST_UPDATE,
                "rp": self.config.results_per_page,
                "page": page,
                "request_locale": self.config.locale,
            },
        )

    def fetch_faq_detail(self, faq_id: str) -> str:
        return self._get(
            FAQ_SEARCH_PATH,
            {"ope": 5, "fid": faq_id, "request_locale": self.config.locale},
        )

    def fetch_card_detail(self, card_id: str) -> str:
        """Per-card FAQ page holding the card's supplementary rulings."""
        return self._get(
            FAQ_SEARCH_PATH,
            {"ope": 4, "cid": card_id, "request_locale": self.config.locale},
        )
