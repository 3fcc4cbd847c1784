"""Rewrite origin-site links inside saved pages."""

import posixpath
from typing import Optional
from urllib.parse import urlsplit

from lxml import etree, html

from core.scraping.extractors.link_extractor import (
    CSS_IMPORT_RE,
    CSS_URL_RE,
    LINK_ATTRIBUTES,
    OG_META_XPATH,
    base_url_for,
    parse_html,
)
from core.scraping.paths import relative_file_path_for_url
from core.scraping.urls import (
    SiteOrigin,
    create_relative_path,
    get_site_path,
    is_local_url,
    relative_to_absolute_url,
)
from models.page import Page


class LinkRewriter:
    """
    Convert links to the origin site for the mirror's destination.

    URL types:
    - absolute: keep links absolute, swapping the origin scheme and
      host for the destination ones
    - relative: './' and '../' paths between site paths, for serving the
      mirror from any path on any host
    - offline: relative paths that point at the saved files themselves
      (about/index.html rather than about/), for browsing from disk

    Links that don't point at the origin site are left alone.
    """

    URL_TYPES = ("absolute", "relative", "offline")

    def __init__(
        self,
        site: SiteOrigin,
        url_type: str = "relative",
        destination_scheme: str = "https://",
        destination_host: str = "",
    ):
        if url_type not in self.URL_TYPES:
            raise ValueError(f"Unknown destination URL type: {url_type!r}")
        self.site = site
        self.url_type = url_type
        self.destination_scheme = destination_scheme
        self.destination_host = destination_host.strip().rstrip("/")

    def convert_url(self, link: str, page: Page, base_url: Optional[str] = None) -> str:
        """Convert one link found on a page."""
        absolute = relative_to_absolute_url(link, base_url or page.url, self.site)
        if not absolute or not is_local_url(absolute, self.site):
            return link

        if self.url_type == "absolute":
            return self._to_destination(absolute)
        return self._to_relative(absolute, page)

    def _to_destination(self, url: str) -> str:
        if not self.destination_host:
            return url
        parts = urlsplit(url)
        converted = f"{self.destination_scheme}{self.destination_host}{parts.path or '/'}"
        if parts.query:
            converted += "?" + parts.query
        if parts.fragment:
            converted += "#" + parts.fragment
        return converted

    def _to_relative(self, url: str, page: Page) -> str:
        parts = urlsplit(url)
        suffix = ""

        if self.url_type == "offline":
            target = "/" + relative_file_path_for_url(url, self.site.path, Page.TYPE_HTML)
        else:
            target = get_site_path(url, self.site.path)
            if parts.query:
                suffix += "?" + parts.query

        if parts.fragment:
            suffix += "#" + parts.fragment

        return create_relative_path(target, self._page_dir(page)) + suffix

    @staticmethod
    def _page_dir(page: Page) -> str:
        # the directory of the saved file, as a site path
        directory = posixpath.dirname(page.file_path or "")
        return "/" + directory + "/" if directory else "/"

    def rewrite_css(self, text: str, page: Page, base_url: Optional[str] = None) -> str:
        """Rewrite url(...) and @import references in CSS text."""

        def replace_url(match):
            quote = match.group(1)
            link = self.convert_url(match.group(2).strip(), page, base_url)
            return f"url({quote}{link}{quote})"

        def replace_import(match):
            quote = match.group(1)
            link = self.convert_url(match.group(2).strip(), page, base_url)
            return f"@import {quote}{link}{quote}"

        text = CSS_URL_RE.sub(replace_url, text)
        return CSS_IMPORT_RE.sub(replace_import, text)

    def rewrite_html(self, content: bytes, page: Page) -> bytes:
        """Rewrite every origin link in an HTML document."""
        doc = parse_html(content)
        if doc is None:
            return content

        base_url = base_url_for(doc, page.url)

        # links are rewritten against the page itself, so <base> must go
        for base in doc.xpath("//base"):
            base.drop_tree()

        for element in doc.iter(etree.Element):
            for attribute in LINK_ATTRIBUTES:
                value = element.get(attribute)
                if value:
                    element.set(attribute, self.convert_url(value, page, base_url))

            srcset = element.get("srcset")
            if srcset:
                element.set("srcset", self._rewrite_srcset(srcset, page, base_url))

            style = element.get("style")
            if style:
                element.set("style", self.rewrite_css(style, page, base_url))

            if element.tag == "style" and element.text:
                element.text = self.rewrite_css(element.text, page, base_url)

        for element in doc.xpath(OG_META_XPATH):
            element.set("content", self.convert_url(element.get("content"), page, base_url))

        tree = doc.getroottree()
        return html.tostring(
            doc,
            doctype=tree.docinfo.doctype or None,
            encoding=tree.docinfo.encoding or "utf-8",
            method="html",
        )

    def _rewrite_srcset(self, srcset: str, page: Page, base_url: str) -> str:
        candidates = []
        for candidate in srcset.split(","):
            parts = candidate.strip().split()
            if not parts:
                continue
            parts[0] = self.convert_url(parts[0], page, base_url)
            candidates.append(" ".join(parts))
        return ", ".join(candidates)
