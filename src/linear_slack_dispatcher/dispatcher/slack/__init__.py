"""Slack API access."""

from linear_slack_dispatcher.dispatcher.slack.client import ChatApiError, PostedMessage, SlackClient

__all__ = ["ChatApiError", "PostedMessage", "SlackClient"]
