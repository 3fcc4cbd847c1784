"""Integration tests running whole archive jobs against a fake origin site."""

import re
import zipfile

import pytest

import config
from core.jobs.archive_manager import ArchiveManager
from core.scraping.fetchers.http_fetcher import PageFetcher
from database.repositories.options_repository import OptionsRepository

STYLE_CSS = b"body { background: url(/images/bg.png); }"


@pytest.fixture
def routes(home_html, about_html):
    return {
        "http://example.test/": (200, "text/html; charset=utf-8", home_html),
        "http://example.test/about": (200, "text/html; charset=utf-8", about_html),
        "http://example.test/blog/": (200, "text/html", b"<html><body><a href='/'>Home</a></body></html>"),
        "http://example.test/style.css": (200, "text/css", STYLE_CSS),
        "http://example.test/images/logo.png": (200, "image/png", b"PNG1"),
        "http://example.test/images/logo@2x.png": (200, "image/png", b"PNG2"),
        "http://example.test/images/og.png": (200, "image/png", b"PNG3"),
        "http://example.test/images/bg.png": (200, "image/png", b"PNG4"),
    }


@pytest.fixture
def origin(db, fake_origin, routes):
    return fake_origin(routes)


@pytest.fixture
def manager(db, origin):
    fetcher = PageFetcher()
    fetcher.session.get = origin
    return ArchiveManager(fetcher=fetcher)


def run_to_completion(manager, max_steps=100):
    """Start a job and continue it until it stops. Returns the status messages seen."""
    seen = []
    assert manager.start() is None
    for _ in range(max_steps):
        if manager.has_finished():
            break
        state = manager.get_state_name()
        manager.continue_()
        message = manager.get_status_messages().get(state)
        if message:
            seen.append(message)
    else:
        pytest.fail("archive job did not finish")
    return seen


class TestZipArchive:
    """Full job delivered as a ZIP file."""

    def test_job_reaches_finished(self, manager):
        run_to_completion(manager)

        assert manager.get_state_name() == "finished"
        assert manager.get_status_messages()["finished"] == "Done!"

    def test_zip_contains_mirror(self, manager):
        run_to_completion(manager)

        archive_name = OptionsRepository().get("archive_name")
        zip_path = config.EXPORTS_DIR / f"{archive_name}.zip"
        assert zip_path.is_file()

        with zipfile.ZipFile(zip_path) as archive:
            names = set(archive.namelist())
            index = archive.read("index.html").decode("utf-8")
            about = archive.read("about/index.html").decode("utf-8")

        assert {
            "index.html",
            "about/index.html",
            "blog/index.html",
            "style.css",
            "images/logo.png",
            "images/bg.png",
        } <= names

        assert 'href="./about"' in index
        assert 'href="https://elsewhere.test/"' in index
        assert 'href="./../"' in about

    def test_download_url_recorded(self, manager):
        run_to_completion(manager)

        options = OptionsRepository()
        assert options.get("archive_download_url") == (
            f"/api/archive/download/{options.get('archive_name')}.zip"
        )

    def test_linked_css_assets_discovered(self, manager, origin):
        run_to_completion(manager)

        assert "http://example.test/images/bg.png" in origin.requested
        page = manager.page_repo.get_by_url("http://example.test/images/bg.png")
        css = manager.page_repo.get_by_url("http://example.test/style.css")
        assert page.found_on_id == css.id

    def test_each_page_fetched_once(self, manager, origin):
        run_to_completion(manager)

        assert len(origin.requested) == len(set(origin.requested))
        assert "https://elsewhere.test/" not in origin.requested

    def test_fetch_progress_is_monotonic(self, manager):
        OptionsRepository().set("fetch_batch_size", 2).save()

        seen = run_to_completion(manager)

        progress = [
            tuple(int(n) for n in re.findall(r"\d+", message))
            for message in seen
            if message.startswith("Fetched")
        ]
        fetched = [p[0] for p in progress]
        assert len(progress) > 1
        assert fetched == sorted(fetched)
        assert progress[-1][0] == progress[-1][1]

    def test_restart_after_finish(self, manager, origin):
        run_to_completion(manager)
        first_count = len(origin.requested)

        run_to_completion(manager)

        assert manager.get_state_name() == "finished"
        assert len(origin.requested) == 2 * first_count


class TestLocalDelivery:
    """Full job copied into a local directory."""

    @pytest.fixture
    def local_dir(self, db):
        return db / "public"

    def test_files_copied_in_batches(self, manager, local_dir):
        (
            OptionsRepository()
            .set("delivery_method", "local")
            .set("local_dir", str(local_dir))
            .set("transfer_batch_size", 3)
            .save()
        )

        seen = run_to_completion(manager)

        assert manager.get_state_name() == "finished"
        assert (local_dir / "index.html").is_file()
        assert (local_dir / "about" / "index.html").is_file()
        assert (local_dir / "images" / "bg.png").read_bytes() == b"PNG4"

        copied = [m for m in seen if m.startswith("Copied")]
        assert len(copied) > 1
        assert copied[-1] == "Copied 8 of 8 files"

    def test_temp_files_deleted(self, manager, local_dir, db):
        (
            OptionsRepository()
            .set("delivery_method", "local")
            .set("local_dir", str(local_dir))
            .set("delete_temp_files", True)
            .save()
        )

        run_to_completion(manager)

        archive_name = OptionsRepository().get("archive_name")
        assert not (db / "tmp" / archive_name).exists()
        assert (local_dir / "index.html").is_file()


class TestAdditionalSources:
    """Additional URLs and files seed the crawl."""

    def test_additional_url_fetched(self, manager, routes, origin):
        routes["http://example.test/unlinked"] = (200, "text/html", b"<html><body>Hidden</body></html>")
        OptionsRepository().set("additional_urls", "http://example.test/unlinked").save()

        run_to_completion(manager)

        assert "http://example.test/unlinked" in origin.requested

    def test_remote_additional_url_rejected(self, manager, origin):
        OptionsRepository().set("additional_urls", "http://elsewhere.test/page").save()

        run_to_completion(manager)

        assert manager.get_state_name() == "finished"
        assert "http://elsewhere.test/page" not in origin.requested
        page = manager.page_repo.get_by_url("http://elsewhere.test/page")
        assert page.error_message == "Attempting to fetch remote URL: http://elsewhere.test/page"

    def test_additional_files_under_document_root(self, manager, routes, origin, db):
        document_root = db / "docroot"
        (document_root / "assets").mkdir(parents=True)
        (document_root / "robots.txt").write_text("User-agent: *")
        (document_root / "assets" / "app.js").write_text("console.log(1);")
        routes["http://example.test/robots.txt"] = (200, "text/plain", b"User-agent: *")
        routes["http://example.test/assets/app.js"] = (200, "application/javascript", b"console.log(1);")

        (
            OptionsRepository()
            .set("document_root", str(document_root))
            .set("additional_files", f"{document_root / 'robots.txt'}\n{document_root / 'assets'}")
            .save()
        )

        run_to_completion(manager)

        assert "http://example.test/robots.txt" in origin.requested
        assert "http://example.test/assets/app.js" in origin.requested


class TestCancellation:
    """Cancelling a job part way through."""

    def test_cancel_keeps_partial_output(self, manager, db):
        OptionsRepository().set("fetch_batch_size", 1).save()
        manager.start()
        manager.continue_()

        assert manager.cancel() is None
        assert manager.get_state_name() == "cancelled"

        archive_name = OptionsRepository().get("archive_name")
        assert (db / "tmp" / archive_name / "index.html").is_file()

        # nothing more happens until a new start
        manager.continue_()
        assert manager.get_state_name() == "cancelled"
