"""LINE adapter: Messaging API push, profile and content endpoints."""

from slackline.adapters.line.client import LINE_API_BASE, LINE_DATA_API_BASE, LineClient

__all__ = ["LINE_API_BASE", "LINE_DATA_API_BASE", "LineClient"]
