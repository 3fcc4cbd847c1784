"""Archive creator - the work behind each archive job step."""

import logging
import shutil
import zipfile
from pathlib import Path
from typing import Optional, Tuple

import config
from core.jobs.context import ArchiveContext
from core.jobs.errors import ArchiveError
from core.scraping.fetchers.http_fetcher import PageFetcher
from core.scraping.rewriter import LinkRewriter
from core.scraping.transformer import PageTransformer
from core.scraping.urls import canonical_url
from database.repositories.page_repository import PageRepository

logger = logging.getLogger(__name__)


class ArchiveCreator:
    """
    Seeds, fetches and delivers the static mirror for one archive job.

    Every method does one bounded slice of work and keeps nothing in
    memory between calls: progress lives in the page store (and, for
    local copies, in the offset the caller persists).
    """

    def __init__(
        self,
        context: ArchiveContext,
        page_repo: Optional[PageRepository] = None,
        fetcher: Optional[PageFetcher] = None,
    ):
        self.context = context
        self.page_repo = page_repo or PageRepository()
        # a fetcher made here is closed again after each batch
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or PageFetcher(page_repo=self.page_repo)

        try:
            rewriter = LinkRewriter(
                context.site,
                url_type=context.destination_url_type,
                destination_scheme=context.destination_scheme,
                destination_host=context.destination_host,
            )
        except ValueError as e:
            raise ArchiveError(str(e), code="invalid_destination_url_type") from e

        self.transformer = PageTransformer(context.site, rewriter, page_repo=self.page_repo)

    # =========================================================================
    # Setup
    # =========================================================================

    def add_origin_and_additional_urls(self) -> int:
        """Seed the page store with the origin URL and the additional URLs."""
        urls = [self.context.site.url] + list(self.context.additional_urls)

        added = 0
        for url in urls:
            if self.page_repo.insert_if_absent(canonical_url(url.strip())):
                added += 1
        return added

    def add_additional_files(self) -> int:
        """
        Seed the page store with URLs for the additional files.

        Each entry is a file or directory under the site's document root;
        directories are walked recursively. Entries outside the document
        root have no URL and are skipped.
        """
        files = self.context.additional_files
        if not files:
            return 0

        if not self.context.document_root:
            logger.warning("Additional files configured without a document root; skipping")
            return 0

        document_root = Path(self.context.document_root).resolve()
        added = 0

        for entry in files:
            path = Path(entry).resolve()
            if not path.exists():
                logger.warning(f"Additional file not found: {entry}")
                continue

            candidates = sorted(p for p in path.rglob("*") if p.is_file()) if path.is_dir() else [path]
            for file_path in candidates:
                url = self._url_for_file(file_path, document_root)
                if url is None:
                    logger.warning(f"Additional file outside document root: {file_path}")
                    continue
                if self.page_repo.insert_if_absent(url):
                    added += 1

        return added

    def _url_for_file(self, file_path: Path, document_root: Path) -> Optional[str]:
        try:
            relative = file_path.relative_to(document_root)
        except ValueError:
            return None
        return self.context.site.url + relative.as_posix()

    # =========================================================================
    # Fetching
    # =========================================================================

    def fetch_pages(self) -> Tuple[int, int]:
        """
        Fetch the next batch of pages not yet checked during this job.

        Returns:
            (pages processed so far, total pages known) - the total grows
            as fetched pages reveal new links
        """
        start_time = self._require_start_time()

        batch = self.page_repo.next_unfetched(start_time, limit=self.context.fetch_batch_size)
        try:
            for page in batch:
                outcome = self.fetcher.fetch(page, self.context.archive_dir, self.context.site)
                if outcome.saved:
                    self.transformer.transform(page, self.context.archive_dir)
        finally:
            if self._owns_fetcher:
                self.fetcher.cleanup()

        return self.page_repo.count_fetched(start_time), self.page_repo.count_total()

    # =========================================================================
    # Transferring
    # =========================================================================

    def create_zip(self) -> str:
        """
        Package the archive directory into a zip file.

        Returns:
            Download URL of the zip file
        """
        zip_name = f"{self.context.archive_name}.zip"
        zip_path = config.EXPORTS_DIR / zip_name
        archive_dir = self.context.archive_dir

        try:
            with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for file_path in sorted(archive_dir.rglob("*")):
                    if file_path.is_file():
                        archive.write(file_path, file_path.relative_to(archive_dir).as_posix())
        except OSError as e:
            raise ArchiveError(
                f"Unable to create ZIP archive: {e}",
                code="cannot_create_zip",
            ) from e

        logger.info(f"ZIP archive created: {zip_path}")
        return f"/api/archive/download/{zip_name}"

    def copy_static_files(self, local_dir: str, offset: int = 0) -> Tuple[int, int]:
        """
        Copy the next batch of fetched files into a local directory.

        Args:
            local_dir: Destination directory
            offset: Number of files already copied by earlier calls

        Returns:
            (files copied so far, total files to copy)
        """
        start_time = self._require_start_time()
        destination = Path(local_dir)

        total = self.page_repo.count_fetched_files(start_time)
        batch = self.page_repo.list_fetched_files(
            start_time, offset=offset, limit=self.context.transfer_batch_size
        )

        try:
            for page in batch:
                source = self.context.archive_dir / page.file_path
                target = destination / page.file_path
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
        except OSError as e:
            raise ArchiveError(
                f"Unable to copy files to {local_dir}: {e}",
                code="cannot_copy_files",
            ) from e

        return offset + len(batch), total

    # =========================================================================
    # Wrap-up
    # =========================================================================

    def delete_temp_static_files(self) -> bool:
        """Remove the archive working directory."""
        try:
            shutil.rmtree(self.context.archive_dir)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning(f"Unable to delete {self.context.archive_dir}: {e}")
            return False
        return True

    def _require_start_time(self):
        if self.context.start_time is None:
            raise ArchiveError("Archive job has not been set up", code="missing_start_time")
        return self.context.start_time
