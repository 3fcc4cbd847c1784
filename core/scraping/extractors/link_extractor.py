"""Find the origin-site links inside fetched pages."""

import re
from typing import Iterable, Iterator, List, Optional
from urllib.parse import urljoin

from lxml import etree, html

from core.scraping.urls import (
    SiteOrigin,
    canonical_url,
    is_local_url,
    relative_to_absolute_url,
)

# CSS url(...) and @import "..." finders
CSS_URL_RE = re.compile(r"url\(\s*(['\"]?)(?!data:)(?!about:)([^'\"\)]*)\1\s*\)", re.IGNORECASE)
CSS_IMPORT_RE = re.compile(r"@import\s+(['\"])(.*?)\1", re.IGNORECASE)

# Element attributes that hold a single URL
LINK_ATTRIBUTES = (
    "href",
    "src",
    "action",
    "poster",
    "background",
    "data-src",
    "data-href",
    "longdesc",
    "usemap",
)

OG_META_XPATH = "//meta[starts-with(@property, 'og:') and @content]"


def parse_srcset(value: str) -> List[str]:
    """Pull the URL out of each candidate in a srcset attribute."""
    urls = []
    for candidate in (value or "").split(","):
        parts = candidate.strip().split()
        if parts:
            urls.append(parts[0])
    return urls


def parse_css_urls(text: str) -> List[str]:
    """Find url(...) and @import references in CSS text."""
    urls = [m.group(2).strip() for m in CSS_URL_RE.finditer(text or "")]
    urls += [m.group(2).strip() for m in CSS_IMPORT_RE.finditer(text or "")]
    return [u for u in urls if u]


def parse_html(content: bytes) -> Optional[html.HtmlElement]:
    """Parse an HTML document, returning None if there is nothing to parse."""
    if not content or not content.strip():
        return None
    try:
        return html.document_fromstring(content)
    except (etree.ParserError, ValueError):
        return None


def base_url_for(doc: html.HtmlElement, page_url: str) -> str:
    """The URL relative links resolve against, honoring <base href>."""
    base_hrefs = doc.xpath("//base/@href")
    if base_hrefs and base_hrefs[0].strip():
        return urljoin(page_url, base_hrefs[0].strip())
    return page_url


def iter_raw_links(doc: html.HtmlElement) -> Iterator[str]:
    """Yield every link-like value in a parsed document, as written."""
    for element in doc.iter(etree.Element):
        if element.tag == "base":
            continue
        for attribute in LINK_ATTRIBUTES:
            value = element.get(attribute)
            if value:
                yield value

        if element.get("srcset"):
            yield from parse_srcset(element.get("srcset"))

        if element.get("style"):
            yield from parse_css_urls(element.get("style"))

        if element.tag == "style" and element.text:
            yield from parse_css_urls(element.text)

    for element in doc.xpath(OG_META_XPATH):
        yield element.get("content")


class LinkExtractor:
    """
    Extract links to origin-site resources from HTML and CSS.

    Every link is made absolute against the page it was found on; only
    links on the origin site are kept, fragment removed, each once and
    in document order.
    """

    def __init__(self, site: SiteOrigin):
        self.site = site

    def extract_from_html(self, content: bytes, page_url: str) -> List[str]:
        """Local URLs referenced by an HTML page."""
        doc = parse_html(content)
        if doc is None:
            return []
        return self._local_urls(iter_raw_links(doc), base_url_for(doc, page_url))

    def extract_from_css(self, text: str, page_url: str) -> List[str]:
        """Local URLs referenced by a stylesheet."""
        return self._local_urls(parse_css_urls(text), page_url)

    def _local_urls(self, links: Iterable[str], base_url: str) -> List[str]:
        found = []
        for link in links:
            absolute = relative_to_absolute_url(link, base_url, self.site)
            if not absolute or not is_local_url(absolute, self.site):
                continue
            absolute = canonical_url(absolute)
            if absolute not in found:
                found.append(absolute)
        return found
