from .local_media_host import LocalMediaHost
from .media_staging import MediaStager
from .publisher_factory import PublisherFactory

__all__ = [
    "LocalMediaHost",
    "MediaStager",
    "PublisherFactory",
]
