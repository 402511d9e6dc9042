from .publish_job_runner import PublishJob, PublishJobReport, PublishJobRunner
from .social_media_facade import SocialMediaFacade

__all__ = [
    "PublishJob",
    "PublishJobReport",
    "PublishJobRunner",
    "SocialMediaFacade",
]
