"""Map page URLs onto the static mirror's file layout."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from core.scraping.urls import get_site_path, remove_params_and_fragment


class PathMappingError(Exception):
    """A page URL could not be given a writable place in the archive."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.message = message
        self.url = url


@dataclass
class UrlPathInfo:
    """Parts of a URL path, like os.path parts but for URLs."""

    dirname: str = ""
    basename: str = ""
    filename: str = ""
    extension: str = ""


def url_path_info(path: str) -> UrlPathInfo:
    """
    Split a URL path into directory, file name and extension.

    Example:
        url_path_info("/manual/en/function.pathinfo.php?test=true")
        # dirname='/manual/en/', basename='function.pathinfo.php',
        # filename='function.pathinfo', extension='php'
    """
    info = UrlPathInfo()
    path = remove_params_and_fragment(path)

    # everything after the last slash is the file name
    dirname, slash, basename = path.rpartition("/")
    if slash:
        info.dirname = dirname + "/"
    info.basename = basename

    filename, dot, extension = basename.rpartition(".")
    if dot:
        info.filename = filename
        info.extension = extension
    else:
        info.filename = basename

    return info


def relative_file_path_for_url(url: str, origin_path: str, page_type: str) -> str:
    """
    Work out the archive-relative file path for a URL, without touching disk.

    URLs without an extension are treated as directories and get an
    index file: index.xml for xml pages, index.html for everything else.
    """
    # sites served from a sub-path are mirrored relative to that path
    info = url_path_info(get_site_path(url, origin_path))
    relative_dir = info.dirname.lstrip("/")

    if info.extension == "":
        if info.filename != "":
            relative_dir += info.filename + "/"
        info.filename = "index"
        info.extension = "xml" if page_type == "xml" else "html"

    return f"{relative_dir}{info.filename}.{info.extension}"


def map_url_to_file_path(
    url: str,
    origin_path: str,
    page_type: str,
    archive_dir: Union[str, Path],
) -> str:
    """
    Map a page URL to a relative file path inside the archive directory.

    Creates the directories the file needs.

    Args:
        url: Absolute URL of the page
        origin_path: Base path the origin site is served from ('/' for the root)
        page_type: Page classification ('html', 'xml', ...)
        archive_dir: Archive working directory

    Returns:
        Path relative to archive_dir, using '/' separators

    Raises:
        PathMappingError: if the path would land outside archive_dir, the
            directory cannot be created or the destination exists and is
            not writable
    """
    relative_path = relative_file_path_for_url(url, origin_path, page_type)
    root = Path(archive_dir).resolve()
    destination = root / relative_path

    if root not in destination.resolve().parents:
        raise PathMappingError("Path is outside the archive directory", url=url)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PathMappingError("Unable to create temporary directory", url=url) from e

    if destination.is_dir() or (destination.exists() and not os.access(destination, os.W_OK)):
        raise PathMappingError("Temporary file exists and is unwriteable", url=url)

    return relative_path
