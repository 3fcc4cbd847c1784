"""URL resolution helpers for the static mirror.

These are pure functions: nothing here touches the network, the
database or the filesystem. The origin site is passed in explicitly
as a SiteOrigin rather than read from global state.

Usage:
    from core.scraping.urls import SiteOrigin, relative_to_absolute_url

    site = SiteOrigin.from_url("http://example.test/")
    relative_to_absolute_url("../style.css", "http://example.test/blog/post/", site)
    # -> "http://example.test/blog/style.css"
"""

import posixpath
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit, urldefrag

PROTOCOL_RE = re.compile(r"^(https?:)?//", re.IGNORECASE)
PARAMS_AND_FRAGMENT_RE = re.compile(r"[?#].*", re.DOTALL)
INDEX_FILENAME_RE = re.compile(r"index\.(html?|php)$")


@dataclass(frozen=True)
class SiteOrigin:
    """Scheme, host and base path of the site being mirrored."""

    scheme: str
    host: str
    path: str = "/"

    @classmethod
    def from_url(cls, url: str) -> "SiteOrigin":
        """Build an origin from a URL such as http://example.test/blog/."""
        parts = urlsplit(url.strip())
        if not parts.netloc:
            raise ValueError(f"Origin URL has no host: {url!r}")
        return cls(
            scheme=(parts.scheme or "http").lower(),
            host=parts.netloc.lower(),
            path=parts.path or "/",
        )

    @property
    def url(self) -> str:
        """The origin URL, always ending with a slash."""
        path = self.path if self.path.endswith("/") else self.path + "/"
        return f"{self.scheme}://{self.host}{path}"

    @property
    def scheme_prefix(self) -> str:
        """Scheme with its separator, e.g. 'https://'."""
        return f"{self.scheme}://"


def strip_protocol_from_url(url: str) -> str:
    """Remove a leading '//', 'http://' or 'https://'."""
    return PROTOCOL_RE.sub("", url, count=1)


def remove_params_and_fragment(url: str) -> str:
    """Return the URL without its query string or fragment."""
    return PARAMS_AND_FRAGMENT_RE.sub("", url)


def strip_index_filenames_from_url(url: str) -> str:
    """Remove a trailing index.html / index.htm / index.php."""
    return INDEX_FILENAME_RE.sub("", url)


def _host_of(url: str) -> Optional[str]:
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if parts.scheme and parts.scheme.lower() not in ("http", "https"):
        return None
    return parts.netloc.lower() or None


def is_local_url(url: str, site: SiteOrigin) -> bool:
    """
    Check whether a URL belongs to the site being mirrored.

    http and https are treated as the same site, and protocol-relative
    URLs ('//host/path') are accepted.
    """
    if not url:
        return False
    return _host_of(url) == site.host


def get_path_from_local_url(url: str, site: SiteOrigin) -> str:
    """Strip protocol and host from a local URL, leaving the path."""
    path = strip_protocol_from_url(url.strip())
    if path.lower().startswith(site.host):
        path = path[len(site.host):]
    return path or "/"


def get_site_path(url: str, origin_path: str = "/") -> str:
    """
    Path of a URL relative to the site root.

    For a site served from a sub-path (e.g. '/blog/'), that prefix is
    stripped so '/blog/about' becomes '/about'. An empty path is '/'.
    """
    path = urlsplit(url).path or "/"
    prefix = origin_path.rstrip("/")
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix):] or "/"
    return path


def canonical_url(url: str) -> str:
    """
    Drop the fragment and resolve '.' and '..' path segments.

    A fragment never names a distinct resource, and '..' can never climb
    above the site root: http://example.test/../a.html is /a.html.
    """
    url = urldefrag(url)[0]
    parts = urlsplit(url)
    segments = parts.path.split("/")
    if "." not in segments and ".." not in segments:
        return url

    path = posixpath.normpath(parts.path)
    if path.startswith("//"):
        path = "/" + path.lstrip("/")
    if path == ".":
        path = ""
    # keep directory URLs as directories
    if segments[-1] in ("", ".", "..") and not path.endswith("/"):
        path += "/"
    return urlunsplit(parts._replace(path=path))


def relative_to_absolute_url(
    extracted_url: Optional[str],
    page_url: str,
    site: SiteOrigin,
) -> Optional[str]:
    """
    Given a URL extracted from a page, return an absolute URL.

    Takes a URL (e.g. /test) extracted from a page (e.g.
    http://foo.com/bar/) and returns an absolute URL (e.g.
    http://foo.com/test). Absolute URLs, URLs with a non-web scheme
    (mailto:, data:) and fragment-only links come back unchanged.

    Args:
        extracted_url: Relative or absolute URL found in the page
        page_url: URL of the page it was found on
        site: The origin site

    Returns:
        Absolute URL, or None for blank or unparseable input
    """
    extracted_url = (extracted_url or "").strip()

    if not extracted_url:
        return None

    if extracted_url.startswith("#"):
        return extracted_url

    # protocol-relative: local ones get the site's scheme
    if extracted_url.startswith("//"):
        if _host_of(extracted_url) == site.host:
            return site.scheme + ":" + extracted_url
        return extracted_url

    try:
        parts = urlsplit(extracted_url)
    except ValueError:
        return None

    if parts.netloc or parts.scheme:
        return extracted_url

    return urljoin(page_url, extracted_url)


def _parent_path(path: str) -> str:
    """Drop the trailing name and the last directory: '/a/b/' -> '/a/', '/a/b.html' -> '/'."""
    segments = path.split("/")
    if len(segments) <= 2:
        return ""
    return "/".join(segments[:-2]) + "/"


def create_relative_path(target_path: str, from_path: str) -> str:
    """
    Compute a './' and '../' based path from one site path to another.

    Walks up from from_path one directory at a time until target_path
    starts with the current ancestor (or no '/' is left), adding a
    '../' per step. Both paths are site paths without a host.

    Examples:
        create_relative_path("/2012/", "/2012/02/05/")       -> "./../../"
        create_relative_path("/2012/02/05/", "/2012/")       -> "./02/05/"
        create_relative_path("/2012/02/05/", "/2012/05/10/") -> "./../../02/05/"
    """
    ancestor = from_path
    depth = 0

    while "/" in ancestor and not target_path.startswith(ancestor):
        ancestor = _parent_path(ancestor)
        depth += 1

    return "./" + "../" * depth + target_path[len(ancestor):]
