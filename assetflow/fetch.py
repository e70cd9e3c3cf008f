"""One-shot download of vendor assets that are missing locally."""

import logging
import os
import shutil
import tempfile
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

from .exceptions import NetworkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VendorAsset:
    """A file fetched from ``url`` into ``path`` (relative to the base path)."""
    url: str
    path: Path


DEFAULT_VENDOR = (
    VendorAsset(
        'https://code.jquery.com/jquery-3.6.4.min.js',
        Path('src/assets/js/jquery.min.js'),
    ),
)


def fetch_if_missing(
    asset: VendorAsset,
    base_path: Union[str, Path, None] = None,
    timeout: float = 30.0,
) -> bool:
    """Download ``asset`` unless its target already exists.

    The download goes to a temporary file that is moved into place only
    when complete.

    Returns:
        True if the file was downloaded, False if it was already present.

    Raises:
        NetworkError: If the download failed.
    """
    target = Path(base_path or Path.cwd()) / asset.path
    if target.exists():
        return False

    logger.info("Downloading %s...", asset.url)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix='.download-', dir=target.parent)
    try:
        with os.fdopen(fd, 'wb') as out:
            with urllib.request.urlopen(asset.url, timeout=timeout) as response:
                shutil.copyfileobj(response, out)
        os.replace(tmp_name, target)
    except (urllib.error.URLError, OSError, ValueError) as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise NetworkError(f"Error downloading {asset.url}: {e}", url=asset.url) from e

    logger.info("Downloaded %s", target.name)
    return True


def fetch_all(
    assets: Sequence[VendorAsset],
    base_path: Union[str, Path, None] = None,
    timeout: float = 30.0,
) -> List[NetworkError]:
    """Fetch every missing asset, collecting failures instead of raising."""
    errors = []
    for asset in assets:
        try:
            fetch_if_missing(asset, base_path, timeout)
        except NetworkError as e:
            logger.error("%s", e)
            errors.append(e)
    return errors
