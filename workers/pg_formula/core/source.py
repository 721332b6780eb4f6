"""
Source archive — download, checksum and unpack the release tarball.
"""
import hashlib
import logging
import tarfile
from pathlib import Path
from typing import Optional, Tuple

import requests

from pg_formula.errors import ChecksumMismatchError, FetchError, SourceError

logger = logging.getLogger(__name__)


def md5_file(path: Path) -> str:
    """MD5 of a file (the recipe's published checksum type)."""
    h = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def fetch_archive(url: str, dest_dir: Path, timeout: int = 300) -> Path:
    """Stream *url* into *dest_dir*; an existing download is reused."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / url.rsplit("/", 1)[-1]
    if target.exists():
        logger.info("Using cached archive %s", target)
        return target

    logger.info("Downloading %s", url)
    partial = target.with_name(target.name + ".incomplete")
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_content(chunk_size=65536):
                    f.write(chunk)
    except (requests.RequestException, OSError) as e:
        if partial.exists():
            partial.unlink()
        raise FetchError(f"Download of {url} failed: {e}") from e

    partial.rename(target)
    return target


def verify_archive(path: Path, expected_md5: str) -> str:
    try:
        actual = md5_file(path)
    except OSError as e:
        raise SourceError(f"Cannot read {path}: {e}") from e
    if actual != expected_md5.lower():
        raise ChecksumMismatchError(str(path), expected_md5, actual)
    logger.info("Checksum OK for %s", path.name)
    return actual


def extract_archive(path: Path, dest_dir: Path) -> Path:
    """
    Unpack *path* into *dest_dir* and return the source directory.

    Release tarballs hold a single top-level directory; if there is more
    than one entry, *dest_dir* itself is the source directory.  Members
    that would land outside *dest_dir* are rejected by the "data" filter.
    """
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        with tarfile.open(path) as tar:
            tar.extractall(dest_dir, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise SourceError(f"Cannot unpack {path}: {e}") from e

    entries = [p for p in dest_dir.iterdir() if not p.name.startswith(".")]
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return dest_dir


def prepare_source(
    url: str,
    md5: str,
    workspace: Path,
    archive: Optional[Path] = None,
    timeout: int = 300,
) -> Tuple[Path, str, Path]:
    """
    Fetch (unless *archive* is given), verify and extract.

    Returns (archive path, verified md5, source dir).
    """
    if archive is None:
        archive = fetch_archive(url, workspace / "downloads", timeout=timeout)
    digest = verify_archive(archive, md5)
    return archive, digest, extract_archive(archive, workspace / "src")
