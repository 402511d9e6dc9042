"""
Composition root.

Wires the media host, stager, publisher selector and idempotency store into
the facade and job runner. Also usable from the command line to publish a
single item:

    python -m social_publisher.main facebook "Caption" --url https://...
"""

import argparse
import asyncio
import json
import sys

import structlog

from .application.services import PublishJobRunner, SocialMediaFacade
from .config import Settings, settings
from .domain.exceptions import UnsupportedPlatformError
from .domain.value_objects import MediaSource
from .infrastructure.adapters import LocalMediaHost, MediaStager, PublisherFactory
from .infrastructure.idempotency import get_idempotency_service
from .infrastructure.logging import configure_logging

configure_logging(settings.service_name, settings.log_level, settings.log_json)

logger = structlog.get_logger()


def build_facade(config: Settings = settings) -> SocialMediaFacade:
    """Create the facade with local media hosting."""
    media_host = LocalMediaHost(
        upload_dir=config.upload_dir,
        base_url=config.base_url,
        download_timeout=config.upload_timeout_seconds,
    )
    stager = MediaStager(
        media_host=media_host,
        temp_dir=config.temp_dir,
        max_image_mb=config.max_image_upload_mb,
        max_video_mb=config.max_video_upload_mb,
    )
    return SocialMediaFacade(stager=stager, publisher_factory=PublisherFactory)


def build_job_runner(config: Settings = settings) -> PublishJobRunner:
    """Create a job runner backed by the process-wide idempotency store."""
    return PublishJobRunner(
        facade=build_facade(config),
        idempotency=get_idempotency_service(config.idempotency_ttl_seconds),
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish one item to a social platform")
    parser.add_argument("platform", help="facebook, instagram, linkedin or tiktok")
    parser.add_argument("caption")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Public URL of the media")
    source.add_argument("--file", help="Local path of the media")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Publish a single item and print the outcome as JSON."""
    args = _parse_args(argv)
    media = MediaSource.from_url(args.url) if args.url else MediaSource.from_path(args.file)

    logger.info("Starting publish", service=settings.service_name, platform=args.platform)
    facade = build_facade()
    try:
        outcome = await facade.publish(args.platform, args.caption, media)
    except UnsupportedPlatformError as e:
        print(str(e), file=sys.stderr)
        return 2

    print(json.dumps(outcome.to_dict(), ensure_ascii=False))
    return 0 if outcome.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
