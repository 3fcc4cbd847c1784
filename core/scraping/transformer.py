"""Post-process a freshly fetched page: discover new pages, rewrite links."""

import logging
from pathlib import Path
from typing import Optional, Union

from core.scraping.extractors.link_extractor import LinkExtractor
from core.scraping.rewriter import LinkRewriter
from core.scraping.urls import SiteOrigin
from database.repositories.page_repository import PageRepository
from models.page import Page

logger = logging.getLogger(__name__)


class PageTransformer:
    """
    Content processing for one saved page.

    Local links found in the page are added to the page store, which
    is the crawl frontier, so the fetching step picks them up on a later
    batch. The saved file is then rewritten in place for the
    destination.
    """

    TRANSFORMABLE_TYPES = (Page.TYPE_HTML, Page.TYPE_CSS)

    def __init__(
        self,
        site: SiteOrigin,
        rewriter: LinkRewriter,
        page_repo: Optional[PageRepository] = None,
    ):
        self.site = site
        self.rewriter = rewriter
        self.extractor = LinkExtractor(site)
        self.page_repo = page_repo or PageRepository()

    def transform(self, page: Page, archive_dir: Union[str, Path]) -> int:
        """
        Process a saved page.

        Args:
            page: A page with a file_path set by the fetcher
            archive_dir: Archive working directory

        Returns:
            Number of newly discovered pages
        """
        if not page.file_path or page.page_type not in self.TRANSFORMABLE_TYPES:
            return 0

        file_path = Path(archive_dir) / page.file_path
        content = file_path.read_bytes()

        if page.is_type(Page.TYPE_HTML):
            urls = self.extractor.extract_from_html(content, page.url)
            rewritten = self.rewriter.rewrite_html(content, page)
        else:
            text = content.decode("utf-8", errors="surrogateescape")
            urls = self.extractor.extract_from_css(text, page.url)
            rewritten = self.rewriter.rewrite_css(text, page).encode(
                "utf-8", errors="surrogateescape"
            )

        discovered = 0
        for url in urls:
            if self.page_repo.insert_if_absent(url, found_on_id=page.id):
                discovered += 1

        if rewritten != content:
            file_path.write_bytes(rewritten)

        if discovered:
            logger.debug(f"Found {discovered} new URLs on {page.url}")
        return discovered
