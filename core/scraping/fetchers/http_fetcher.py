"""HTTP fetcher that saves origin pages into the archive directory."""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import requests
import urllib3
from requests.exceptions import RequestException

import config
from core.scraping.paths import PathMappingError, map_url_to_file_path
from core.scraping.urls import SiteOrigin, is_local_url
from database.repositories.page_repository import PageRepository
from models.page import Page
from utils.logger import log_fetch

logger = logging.getLogger(__name__)

# Fetches only ever go to the origin site, which may use a self-signed cert
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


@dataclass
class FetchOutcome:
    """Result from fetching one page."""

    success: bool
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    file_path: Optional[str] = None
    error: Optional[str] = None
    remote: bool = False

    @property
    def saved(self) -> bool:
        """True when the page body was written into the archive."""
        return self.file_path is not None


class PageFetcher:
    """
    Fetch origin pages one at a time and persist the outcome.

    Each fetch is a blocking GET with redirects disabled: a 3xx is
    recorded as its status code, never followed. The body is streamed
    to a temp file and only moved into the archive on a 200 with a
    mappable path. The page row is saved exactly once per attempt.
    """

    def __init__(
        self,
        page_repo: Optional[PageRepository] = None,
        timeout: int = config.FETCH_TIMEOUT,
        chunk_size: int = config.FETCH_CHUNK_SIZE,
    ):
        self.page_repo = page_repo or PageRepository()
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = requests.Session()

    def get_headers(self, custom_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Build request headers."""
        headers = {
            "User-Agent": config.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

        if custom_headers:
            headers.update(custom_headers)

        return headers

    def fetch(
        self,
        page: Page,
        archive_dir: Union[str, Path],
        site: SiteOrigin,
    ) -> FetchOutcome:
        """
        Fetch a page and save it into the archive directory.

        Args:
            page: The page to fetch (updated in place and saved)
            archive_dir: Archive working directory
            site: The origin site; URLs outside it are never fetched

        Returns:
            FetchOutcome describing what happened
        """
        url = page.url

        # Don't process URLs that don't belong to the origin site
        if not is_local_url(url, site):
            message = f"Attempting to fetch remote URL: {url}"
            page.set_error_message(message)
            page.last_checked_at = datetime.now()
            self.page_repo.save(page)
            log_fetch(url, None, error=message)
            return FetchOutcome(success=False, error=message, remote=True)

        fd, temp_path = tempfile.mkstemp(prefix=f"{config.SLUG}-")

        try:
            response = self.session.get(
                url,
                headers=self.get_headers(),
                timeout=self.timeout,
                verify=False,
                allow_redirects=False,
                stream=True,
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    fd = None
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            handle.write(chunk)
            finally:
                response.close()

        except RequestException as e:
            if fd is not None:
                os.close(fd)
            _discard(temp_path)

            page.http_status_code = None
            page.last_checked_at = datetime.now()
            self.page_repo.save(page)

            log_fetch(url, None, error=str(e))
            return FetchOutcome(success=False, error=str(e))

        page.http_status_code = response.status_code
        page.content_type = response.headers.get("Content-Type")
        page.last_checked_at = datetime.now()

        relative_path = None
        if page.http_status_code == 200:
            try:
                relative_path = map_url_to_file_path(
                    url, site.path, page.page_type, archive_dir
                )
            except PathMappingError as e:
                page.set_error_message(e.message)

        if relative_path:
            shutil.move(temp_path, str(Path(archive_dir) / relative_path))
            page.file_path = relative_path
        else:
            _discard(temp_path)
            page.file_path = None

        self.page_repo.save(page)

        log_fetch(url, page.http_status_code, relative_path, page.error_message)
        return FetchOutcome(
            success=True,
            status_code=page.http_status_code,
            content_type=page.content_type,
            file_path=relative_path,
            error=page.error_message,
        )

    def cleanup(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
