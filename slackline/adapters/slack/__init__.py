"""Slack adapter: Web API profile lookup, incoming webhooks, private files."""

from slackline.adapters.slack.client import SLACK_API_BASE, SlackClient

__all__ = ["SLACK_API_BASE", "SlackClient"]
