"""Per-job archive settings, built from the options store."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import config
from core.jobs.errors import ArchiveError
from core.scraping.urls import SiteOrigin
from database.repositories.options_repository import OptionsRepository


@dataclass(frozen=True)
class ArchiveContext:
    """
    Everything one archive job needs to know, read once per invocation.

    Components get this passed in rather than reading options on their
    own, so a step always sees one consistent snapshot.
    """

    site: SiteOrigin
    archive_name: str
    temp_files_dir: Path
    start_time: Optional[datetime] = None
    destination_scheme: str = "https://"
    destination_host: str = ""
    destination_url_type: str = "relative"
    delivery_method: str = "zip"
    local_dir: str = ""
    additional_urls: Tuple[str, ...] = ()
    additional_files: Tuple[str, ...] = ()
    document_root: str = ""
    delete_temp_files: bool = False
    fetch_batch_size: int = config.FETCH_BATCH_SIZE
    transfer_batch_size: int = config.TRANSFER_BATCH_SIZE

    @property
    def archive_dir(self) -> Path:
        """Working directory the mirror is built in."""
        return self.temp_files_dir / self.archive_name

    @classmethod
    def from_options(cls, options: OptionsRepository) -> "ArchiveContext":
        """
        Build a context from the persisted options.

        Raises:
            ArchiveError: if the origin URL is missing or has no host
        """
        origin_url = options.get("origin_url") or config.ORIGIN_URL
        try:
            site = SiteOrigin.from_url(origin_url)
        except ValueError as e:
            raise ArchiveError(
                f"Invalid origin URL: {origin_url}",
                code="invalid_origin_url",
            ) from e

        start_time = options.get("archive_start_time")

        return cls(
            site=site,
            archive_name=options.get("archive_name") or config.SLUG,
            temp_files_dir=Path(options.get("temp_files_dir") or config.TEMP_FILES_DIR),
            start_time=datetime.fromisoformat(start_time) if start_time else None,
            destination_scheme=options.get("destination_scheme", "https://"),
            destination_host=options.get("destination_host", ""),
            destination_url_type=options.get("destination_url_type", "relative"),
            delivery_method=options.get("delivery_method", "zip"),
            local_dir=options.get("local_dir", ""),
            additional_urls=tuple(options.get_list("additional_urls")),
            additional_files=tuple(options.get_list("additional_files")),
            document_root=options.get("document_root", ""),
            delete_temp_files=options.get_bool("delete_temp_files", False),
            # a batch of 0 would never make progress
            fetch_batch_size=max(1, options.get_int("fetch_batch_size", config.FETCH_BATCH_SIZE)),
            transfer_batch_size=max(
                1, options.get_int("transfer_batch_size", config.TRANSFER_BATCH_SIZE)
            ),
        )
