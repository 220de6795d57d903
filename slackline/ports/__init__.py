"""Port interfaces (Hexagonal Architecture)."""

from slackline.ports.outbound import ContentResult, DeliveryResult, LinePort, ProfileLookup, SlackPort

__all__ = [
    "ContentResult",
    "DeliveryResult",
    "LinePort",
    "ProfileLookup",
    "SlackPort",
]
