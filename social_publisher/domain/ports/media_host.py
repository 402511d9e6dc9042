"""
Outbound port for media hosting.

Turns local bytes or a transient URL into a permanent public URL that
URL-based publish protocols can hand to the social network.
"""

from abc import ABC, abstractmethod


class MediaHost(ABC):
    """Port for the external media-hosting capability."""

    @abstractmethod
    async def upload_from_url(self, url: str) -> str:
        """Copy remote media to permanent hosting and return its public URL."""
        ...

    @abstractmethod
    async def upload_from_bytes(
        self,
        data: bytes,
        filename: str,
        content_type: str | None = None,
    ) -> str:
        """Host a byte buffer and return its public URL."""
        ...

    @abstractmethod
    async def delete_by_reference(self, reference: str) -> None:
        """Delete hosted media by the URL (or path) returned on upload."""
        ...
