"""Tests for vendor asset downloads."""

import io
import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest

from assetflow.exceptions import NetworkError
from assetflow.fetch import DEFAULT_VENDOR, VendorAsset, fetch_all, fetch_if_missing

ASSET = VendorAsset("https://example.com/lib.min.js", Path("src/assets/js/lib.min.js"))


class TestFetchIfMissing:
    """Tests for fetch_if_missing."""

    def test_existing_file_is_kept(self, tmp_path):
        target = tmp_path / ASSET.path
        target.parent.mkdir(parents=True)
        target.write_text("local copy")

        with patch("assetflow.fetch.urllib.request.urlopen") as urlopen:
            assert fetch_if_missing(ASSET, tmp_path) is False

        urlopen.assert_not_called()
        assert target.read_text() == "local copy"

    def test_download(self, tmp_path):
        with patch(
            "assetflow.fetch.urllib.request.urlopen",
            return_value=io.BytesIO(b"/*! lib */"),
        ) as urlopen:
            assert fetch_if_missing(ASSET, tmp_path, timeout=5) is True

        urlopen.assert_called_once_with(ASSET.url, timeout=5)
        assert (tmp_path / ASSET.path).read_bytes() == b"/*! lib */"

    def test_network_error(self, tmp_path):
        with patch(
            "assetflow.fetch.urllib.request.urlopen",
            side_effect=urllib.error.URLError("no route to host"),
        ):
            with pytest.raises(NetworkError, match="no route to host") as excinfo:
                fetch_if_missing(ASSET, tmp_path)

        assert excinfo.value.url == ASSET.url
        assert not (tmp_path / ASSET.path).exists()
        assert list((tmp_path / ASSET.path).parent.iterdir()) == []


class TestFetchAll:
    """Tests for fetch_all."""

    def test_collects_errors(self, tmp_path):
        other = VendorAsset("https://example.com/other.js", Path("vendor/other.js"))
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor" / "other.js").write_text("x")

        with patch(
            "assetflow.fetch.urllib.request.urlopen",
            side_effect=urllib.error.URLError("offline"),
        ):
            errors = fetch_all([ASSET, other], tmp_path)

        assert len(errors) == 1
        assert errors[0].url == ASSET.url

    def test_default_vendor(self):
        assert [a.path for a in DEFAULT_VENDOR] == [Path("src/assets/js/jquery.min.js")]
