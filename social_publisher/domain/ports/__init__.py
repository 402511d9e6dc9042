from .idempotency import IdempotencyPort, IdempotencyRecord
from .media_host import MediaHost
from .social_media_publisher import SocialMediaPublisher

__all__ = [
    "IdempotencyPort",
    "IdempotencyRecord",
    "MediaHost",
    "SocialMediaPublisher",
]
