"""Tests for the publish orchestrator."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from social_publisher.application.services import SocialMediaFacade
from social_publisher.channels import FacebookPublisher, InstagramPublisher, TikTokPublisher
from social_publisher.domain.exceptions import UnsupportedPlatformError
from social_publisher.domain.ports import SocialMediaPublisher
from social_publisher.domain.value_objects import (
    MediaRequirement,
    MediaSource,
    Platform,
    PublishOutcome,
    PublishRequest,
)
from social_publisher.infrastructure.adapters import (
    LocalMediaHost,
    MediaStager,
    PublisherFactory,
)


class FakePublisher(SocialMediaPublisher):
    """Publisher double that records what it receives."""

    def __init__(
        self,
        platform: Platform,
        error: str | None = None,
        exception: Exception | None = None,
        requirement: MediaRequirement = MediaRequirement.PUBLIC_URL,
    ) -> None:
        self._platform = platform
        self._error = error
        self._exception = exception
        self._requirement = requirement
        self.calls = []

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def media_requirement(self) -> MediaRequirement:
        return self._requirement

    async def publish(self, caption, media):
        self.calls.append((caption, media))
        if self._exception is not None:
            raise self._exception
        if self._error is not None:
            return PublishOutcome.failed(self._platform, self._error)
        return PublishOutcome.succeeded(self._platform, "post-1")


@pytest.fixture(autouse=True)
def reset_factory():
    PublisherFactory.reset()
    yield
    PublisherFactory.reset()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path / "tmp"


@pytest.fixture
def stager(upload_dir, temp_dir):
    host = LocalMediaHost(upload_dir=str(upload_dir), base_url="http://localhost:3000")
    stager = MediaStager(media_host=host, temp_dir=str(temp_dir))
    stager.release = AsyncMock(wraps=stager.release)
    return stager


@pytest.fixture
def facade(stager):
    return SocialMediaFacade(stager=stager)


def image_buffer():
    return MediaSource.from_bytes(b"png-data", "foto.png", "image/png")


class TestPublish:
    @pytest.mark.asyncio
    async def test_facebook_with_url(self, facade, stager):
        PublisherFactory.register(
            Platform.FACEBOOK, FacebookPublisher(access_token="token", page_id="PAGE")
        )
        response = httpx.Response(
            200, json={"id": "123"}, request=httpx.Request("POST", "https://graph.facebook.com")
        )

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=response
            )
            outcome = await facade.publish(
                "facebook", "Hello UAGRM", MediaSource.from_url("https://img/x.png")
            )

        assert outcome.to_dict() == {"success": True, "platform": "facebook", "post_id": "123"}
        stager.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_keeps_hosted_media(self, facade, upload_dir):
        publisher = FakePublisher(Platform.INSTAGRAM)
        PublisherFactory.register(Platform.INSTAGRAM, publisher)

        outcome = await facade.publish(Platform.INSTAGRAM, "Hola", image_buffer())

        assert outcome.success is True
        assert outcome.media_url.startswith("http://localhost:3000/uploads/")
        staged = publisher.calls[0][1]
        assert staged.location == outcome.media_url
        assert len(list(upload_dir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_failed_publish_releases_staged_media_once(self, facade, stager, upload_dir):
        PublisherFactory.register(
            Platform.INSTAGRAM, FakePublisher(Platform.INSTAGRAM, error="Error en paso 1")
        )

        outcome = await facade.publish("instagram", "Hola", image_buffer())

        assert outcome.success is False
        assert outcome.error == "Error en paso 1"
        assert stager.release.await_count == 1
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_publisher_exception_becomes_failed_outcome(self, facade, stager, upload_dir):
        PublisherFactory.register(
            Platform.LINKEDIN,
            FakePublisher(Platform.LINKEDIN, exception=RuntimeError("boom")),
        )

        outcome = await facade.publish("linkedin", "Hola", image_buffer())

        assert outcome.success is False
        assert outcome.platform == "linkedin"
        assert outcome.error == "boom"
        assert stager.release.await_count == 1
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_staging_failure_becomes_failed_outcome(self, facade, stager, tmp_path):
        publisher = FakePublisher(Platform.FACEBOOK)
        PublisherFactory.register(Platform.FACEBOOK, publisher)

        outcome = await facade.publish(
            "facebook", "Hola", MediaSource.from_path(str(tmp_path / "missing.png"))
        )

        assert outcome.success is False
        assert "no encontrado" in outcome.error
        assert publisher.calls == []
        stager.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_caption(self, facade, stager, upload_dir):
        publisher = FakePublisher(Platform.FACEBOOK)
        PublisherFactory.register(Platform.FACEBOOK, publisher)

        outcome = await facade.publish("facebook", "", image_buffer())

        assert outcome.error == "Caption es requerido"
        assert publisher.calls == []
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_cancelled_publish_releases_hosted_media(self, facade, stager, upload_dir):
        PublisherFactory.register(
            Platform.INSTAGRAM,
            InstagramPublisher(
                access_token="token", instagram_account_id="IG_ID", settle_seconds=30
            ),
        )
        container = httpx.Response(
            200, json={"id": "container-1"}, request=httpx.Request("POST", "https://graph.facebook.com")
        )

        with patch("httpx.AsyncClient") as mock_client:
            client = mock_client.return_value.__aenter__.return_value
            client.post = AsyncMock(return_value=container)

            task = asyncio.create_task(facade.publish("instagram", "Hola", image_buffer()))
            for _ in range(100):
                if client.post.await_count:
                    break
                await asyncio.sleep(0.01)

            # Hosted and now waiting out the settle delay
            assert len(list(upload_dir.iterdir())) == 1

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert client.post.await_count == 1
        assert stager.release.await_count == 1
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_unsupported_platform_raises(self, facade, stager):
        with pytest.raises(UnsupportedPlatformError, match="twitter"):
            await facade.publish("twitter", "Hola", image_buffer())

        stager.release.assert_not_awaited()


class TestPublishVideo:
    @pytest.mark.asyncio
    async def test_tiktok_gets_local_temp_file_then_cleanup(self, facade, temp_dir):
        publisher = FakePublisher(Platform.TIKTOK)
        PublisherFactory.register(Platform.TIKTOK, publisher)
        media = MediaSource.from_bytes(b"video", "clip.mp4", "video/mp4")

        outcome = await facade.publish("tiktok", "Video", media)

        assert outcome.success is True
        assert outcome.media_url is None
        staged = publisher.calls[0][1]
        assert staged.temporary is True
        assert staged.location.startswith(str(temp_dir))
        assert not Path(staged.location).exists()

    @pytest.mark.asyncio
    async def test_tiktok_remote_url_passed_to_publisher(self, facade):
        publisher = FakePublisher(Platform.TIKTOK)
        PublisherFactory.register(Platform.TIKTOK, publisher)

        await facade.publish_video("Video", MediaSource.from_url("https://cdn.test/v.mp4"))

        assert publisher.calls[0][1].location == "https://cdn.test/v.mp4"

    @pytest.mark.asyncio
    async def test_tiktok_without_token(self, facade, tmp_path):
        PublisherFactory.register(Platform.TIKTOK, TikTokPublisher(access_token=""))
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"video")

        with patch("httpx.AsyncClient") as mock_client:
            outcome = await facade.publish("tiktok", "Video", MediaSource.from_path(str(video)))

        assert outcome.to_dict() == {
            "success": False,
            "platform": "tiktok",
            "error": "Token no configurado",
        }
        mock_client.assert_not_called()
        assert video.exists()


class TestPublishExistingUrl:
    @pytest.mark.asyncio
    async def test_no_staging(self, facade, stager):
        publisher = FakePublisher(Platform.FACEBOOK)
        PublisherFactory.register(Platform.FACEBOOK, publisher)

        outcome = await facade.publish_existing_url(
            "facebook", "Hola", "https://generated.test/a.png"
        )

        assert outcome.success is True
        assert outcome.media_url is None
        assert publisher.calls[0][1].location == "https://generated.test/a.png"
        stager.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exception_becomes_failed_outcome(self, facade):
        PublisherFactory.register(
            Platform.FACEBOOK,
            FakePublisher(Platform.FACEBOOK, exception=httpx.ReadTimeout("timed out")),
        )

        outcome = await facade.publish_existing_url("facebook", "Hola", "https://x/a.png")

        assert outcome.success is False
        assert outcome.error == "timed out"


class TestPublishBatch:
    @pytest.mark.asyncio
    async def test_runs_each_request_in_order(self, facade):
        order = []

        class Recording(FakePublisher):
            async def publish(self, caption, media):
                order.append(self.platform)
                return await super().publish(caption, media)

        PublisherFactory.register(Platform.FACEBOOK, Recording(Platform.FACEBOOK))
        PublisherFactory.register(
            Platform.INSTAGRAM, Recording(Platform.INSTAGRAM, error="Error en paso 2")
        )
        url = MediaSource.from_url("https://img.test/a.png")

        outcomes = await facade.publish_batch(
            [
                PublishRequest(Platform.FACEBOOK, "Hola", url),
                PublishRequest("twitter", "Hola", url),
                PublishRequest(Platform.INSTAGRAM, "Hola", url),
            ]
        )

        assert order == [Platform.FACEBOOK, Platform.INSTAGRAM]
        assert [o.platform for o in outcomes] == ["facebook", "twitter", "instagram"]
        assert [o.success for o in outcomes] == [True, False, False]
        assert "no soportada" in outcomes[1].error
        assert outcomes[2].error == "Error en paso 2"
