from .base import BasePublisher
from .facebook import FacebookPublisher
from .instagram import InstagramPublisher
from .linkedin import LinkedInPublisher
from .tiktok import TikTokPublisher

__all__ = [
    "BasePublisher",
    "FacebookPublisher",
    "InstagramPublisher",
    "LinkedInPublisher",
    "TikTokPublisher",
]
