"""Unit tests for URL resolution helpers."""

import pytest

from core.scraping.urls import (
    SiteOrigin,
    canonical_url,
    create_relative_path,
    get_path_from_local_url,
    get_site_path,
    is_local_url,
    relative_to_absolute_url,
    remove_params_and_fragment,
    strip_index_filenames_from_url,
    strip_protocol_from_url,
)


class TestSiteOrigin:
    """Tests for SiteOrigin."""

    def test_from_url(self):
        site = SiteOrigin.from_url("https://Example.Test/blog/")
        assert site.scheme == "https"
        assert site.host == "example.test"
        assert site.path == "/blog/"

    def test_url_always_ends_with_slash(self):
        assert SiteOrigin.from_url("http://example.test").url == "http://example.test/"
        assert SiteOrigin.from_url("http://example.test/blog").url == "http://example.test/blog/"

    def test_missing_host_rejected(self):
        with pytest.raises(ValueError):
            SiteOrigin.from_url("/just/a/path")


class TestIsLocalUrl:
    """Tests for is_local_url."""

    def test_same_host(self, site):
        assert is_local_url("http://example.test/about", site)

    def test_https_equivalent_to_http(self, site):
        assert is_local_url("https://example.test/about", site)

    def test_host_case_insensitive(self, site):
        assert is_local_url("http://EXAMPLE.test/", site)

    def test_protocol_relative(self, site):
        assert is_local_url("//example.test/style.css", site)

    def test_other_host(self, site):
        assert not is_local_url("http://elsewhere.test/", site)

    def test_subdomain_is_not_local(self, site):
        assert not is_local_url("http://cdn.example.test/", site)

    def test_non_web_scheme(self, site):
        assert not is_local_url("mailto:hello@example.test", site)

    def test_relative_and_empty(self, site):
        assert not is_local_url("/about", site)
        assert not is_local_url("", site)


class TestRelativeToAbsoluteUrl:
    """Tests for relative_to_absolute_url."""

    PAGE = "http://example.test/blog/post/"

    def test_fragment_unchanged(self, site):
        assert relative_to_absolute_url("#frag", self.PAGE, site) == "#frag"

    def test_blank_is_none(self, site):
        assert relative_to_absolute_url("", self.PAGE, site) is None
        assert relative_to_absolute_url("   ", self.PAGE, site) is None
        assert relative_to_absolute_url(None, self.PAGE, site) is None

    def test_protocol_relative_local_gets_site_scheme(self, site):
        assert relative_to_absolute_url("//example.test/x", self.PAGE, site) == "http://example.test/x"

    def test_protocol_relative_remote_unchanged(self, site):
        assert relative_to_absolute_url("//elsewhere.test/x", self.PAGE, site) == "//elsewhere.test/x"

    def test_absolute_unchanged(self, site):
        url = "https://elsewhere.test/a?b=c"
        assert relative_to_absolute_url(url, self.PAGE, site) == url

    def test_other_schemes_unchanged(self, site):
        assert relative_to_absolute_url("mailto:a@b.test", self.PAGE, site) == "mailto:a@b.test"
        assert relative_to_absolute_url("data:image/png;base64,AAAA", self.PAGE, site) == (
            "data:image/png;base64,AAAA"
        )

    def test_root_relative(self, site):
        assert relative_to_absolute_url("/about", self.PAGE, site) == "http://example.test/about"

    def test_document_relative(self, site):
        assert relative_to_absolute_url("../style.css", self.PAGE, site) == (
            "http://example.test/blog/style.css"
        )

    def test_query_and_fragment_kept(self, site):
        assert relative_to_absolute_url("page?x=1#top", self.PAGE, site) == (
            "http://example.test/blog/post/page?x=1#top"
        )


class TestCreateRelativePath:
    """Tests for create_relative_path."""

    def test_up_to_ancestor(self):
        assert create_relative_path("/2012/", "/2012/02/05/") == "./../../"

    def test_down_from_ancestor(self):
        assert create_relative_path("/2012/02/05/", "/2012/") == "./02/05/"

    def test_across_branches(self):
        assert create_relative_path("/2012/02/05/", "/2012/05/10/") == "./../../02/05/"

    def test_sibling_month(self):
        assert create_relative_path("/2012/02/05/", "/2012/01/") == "./../02/05/"

    def test_from_root(self):
        assert create_relative_path("/about/", "/") == "./about/"

    def test_to_root(self):
        assert create_relative_path("/", "/about/") == "./../"

    def test_file_target(self):
        assert create_relative_path("/style.css", "/blog/post/") == "./../../style.css"


class TestStringHelpers:
    """Tests for the small string helpers."""

    def test_strip_protocol(self):
        assert strip_protocol_from_url("https://example.test/a") == "example.test/a"
        assert strip_protocol_from_url("//example.test/a") == "example.test/a"

    def test_remove_params_and_fragment(self):
        assert remove_params_and_fragment("/a/b?c=d#e") == "/a/b"
        assert remove_params_and_fragment("/a/b#e") == "/a/b"

    def test_strip_index_filenames(self):
        assert strip_index_filenames_from_url("/a/index.html") == "/a/"
        assert strip_index_filenames_from_url("/a/index.php") == "/a/"
        assert strip_index_filenames_from_url("/a/page.html") == "/a/page.html"

    def test_get_path_from_local_url(self, site):
        assert get_path_from_local_url("http://example.test/a/b", site) == "/a/b"
        assert get_path_from_local_url("http://example.test", site) == "/"

    def test_get_site_path_strips_origin_prefix(self):
        assert get_site_path("http://example.test/blog/about", "/blog/") == "/about"
        assert get_site_path("http://example.test/blog", "/blog/") == "/"
        assert get_site_path("http://example.test/blogger", "/blog/") == "/blogger"
        assert get_site_path("http://example.test", "/") == "/"

    def test_canonical_url(self):
        assert canonical_url("http://example.test/a#b") == "http://example.test/a"

    @pytest.mark.parametrize("url,expected", [
        ("http://example.test/../../escape.html", "http://example.test/escape.html"),
        ("http://example.test/a/./b/../c.css", "http://example.test/a/c.css"),
        ("http://example.test/a/b/../", "http://example.test/a/"),
        ("http://example.test/a/b/..", "http://example.test/a/"),
        ("http://example.test/a/..?q=1#top", "http://example.test/?q=1"),
        ("http://example.test/a..b/c.d", "http://example.test/a..b/c.d"),
    ])
    def test_canonical_url_resolves_dot_segments(self, url, expected):
        assert canonical_url(url) == expected
