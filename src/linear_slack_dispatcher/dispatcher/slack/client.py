"""Slack Web API client (chat.postMessage only)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


class ChatApiError(RuntimeError):
    """Any failure posting to Slack: transport, HTTP status, or `ok: false`."""


@dataclass(frozen=True, slots=True)
class PostedMessage:
    channel: str
    ts: str


class SlackClient:
    """Posts messages as the user that owns the token.

    A user token (xoxp-) is required for the mention to trigger the assistant;
    bot-authored messages are ignored by it.
    """

    def __init__(
        self,
        *,
        token: str,
        api_url: str = "https://slack.com/api",
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not token:
            raise ValueError("Slack token is required")

        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json; charset=utf-8",
                "User-Agent": "linear-slack-dispatcher",
            }
        )

    def _method_url(self, method: str) -> str:
        return f"{self._api_url}/{method.lstrip('/')}"

    def post_message(self, *, channel: str, text: str) -> PostedMessage:
        """Post `text` verbatim to `channel` with link and media previews disabled."""

        if not channel.strip():
            raise ValueError("channel is required")
        if not text.strip():
            raise ValueError("Message text is required")

        try:
            resp = self._session.post(
                self._method_url("chat.postMessage"),
                json={
                    "channel": channel,
                    "text": text,
                    "unfurl_links": False,
                    "unfurl_media": False,
                },
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload: Any = resp.json()
        except requests.RequestException as e:
            raise ChatApiError(f"Slack request failed: {e}") from e
        except ValueError as e:
            raise ChatApiError("Slack returned a non-JSON response") from e

        if not isinstance(payload, dict):
            raise ChatApiError("Slack returned an unexpected response shape")
        if not payload.get("ok"):
            raise ChatApiError(f"chat.postMessage failed: {payload.get('error', 'unknown_error')}")

        ts = payload.get("ts")
        posted_channel = payload.get("channel")
        message = PostedMessage(
            channel=posted_channel if isinstance(posted_channel, str) else channel,
            ts=ts if isinstance(ts, str) else "",
        )
        logger.info("Slack message posted", extra={"channel": message.channel, "ts": message.ts})
        return message

    def close(self) -> None:
        self._session.close()
