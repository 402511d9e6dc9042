import asyncio
import re
from unittest.mock import MagicMock, patch

import httpx
import pytest

from social_publisher.infrastructure.media_files import (
    download_to_file,
    remove_file,
    unique_filename,
    write_temp_file,
)


class FakeStream:
    def __init__(self, response):
        self.response = response

    async def __aenter__(self):
        return self.response

    async def __aexit__(self, *args):
        return False


class CancelledBody(httpx.AsyncByteStream):
    """Body whose transfer is cancelled after the first chunk."""

    async def __aiter__(self):
        yield b"partial"
        raise asyncio.CancelledError()


def test_unique_filename_format():
    name = unique_filename("temp_tiktok", ".mp4")

    assert re.fullmatch(r"temp_tiktok_\d{13}_[0-9a-f]{8}\.mp4", name)
    assert unique_filename("x") != unique_filename("x")


def test_write_temp_file_creates_directory(tmp_path):
    path = write_temp_file(b"abc", str(tmp_path / "nested"), "staged", ".png")

    assert path.endswith(".png")
    with open(path, "rb") as fh:
        assert fh.read() == b"abc"


def test_remove_file(tmp_path):
    target = tmp_path / "x.bin"
    target.write_bytes(b"1")

    assert remove_file(target) is True
    assert not target.exists()
    assert remove_file(target) is False


@pytest.mark.asyncio
async def test_download_to_file(tmp_path):
    url = "https://cdn.test/clip.mp4"
    response = httpx.Response(
        200,
        content=b"video-bytes",
        headers={"content-type": "video/mp4"},
        request=httpx.Request("GET", url),
    )

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.stream = MagicMock(
            return_value=FakeStream(response)
        )
        downloaded = await download_to_file(url, str(tmp_path), "dl", timeout=45.0)

    assert downloaded.size == 11
    assert downloaded.content_type == "video/mp4"
    assert downloaded.path.endswith(".mp4")
    assert mock_client.call_args.kwargs["timeout"] == httpx.Timeout(45.0)
    assert mock_client.call_args.kwargs["follow_redirects"] is True


@pytest.mark.asyncio
async def test_cancelled_download_leaves_no_partial_file(tmp_path):
    url = "https://cdn.test/clip.mp4"
    response = httpx.Response(200, stream=CancelledBody(), request=httpx.Request("GET", url))

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.stream = MagicMock(
            return_value=FakeStream(response)
        )
        with pytest.raises(asyncio.CancelledError):
            await download_to_file(url, str(tmp_path), "dl")

    assert list(tmp_path.iterdir()) == []
