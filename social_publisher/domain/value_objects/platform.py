from enum import Enum


class Platform(str, Enum):
    """Social networks known to the publishing core."""

    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    WHATSAPP = "whatsapp"
