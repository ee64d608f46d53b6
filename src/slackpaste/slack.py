"""Slack thread extraction rules.

Turns HTML copied out of the Slack web client into a list of messages
(author, timestamp, cleaned rich-text content) and renders them back into a
compact, paste-friendly HTML transcript.

Slack markup relied on:
- ``[data-qa=message_container]`` wraps one message
- ``[data-qa=message_sender_name]`` carries the author name, with the user id
  in ``data-message-sender``; absent on consecutive messages by the same author
- ``.c-timestamp`` is a link to the message, with epoch seconds in ``data-ts``
- ``.p-rich_text_block`` holds the message body

Usage:
    from slackpaste.slack import extract_slack

    transcript = extract_slack(clipboard_html)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit
from zoneinfo import ZoneInfo

from slackpaste.config import ExtractConfig, RenderConfig
from slackpaste.html_render import SafeHtml, html_tag, join_html
from slackpaste.visitor import (
    REMOVE,
    HTMLVisitor,
    Markup,
    Render,
    on_enter,
    on_exit,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from slackpaste.html_render import Renderer
    from slackpaste.markup import Element
    from slackpaste.visitor import Registration, Replacement

__all__ = [
    "ExtractSlack",
    "ExtractSlackMessageContent",
    "SlackAuthor",
    "SlackMessage",
    "extract_slack",
]

logger = logging.getLogger(__name__)


def _set_style_property(style: str | None, name: str, value: str) -> str:
    """Set one declaration in an inline ``style`` string, keeping the others."""
    declarations: dict[str, str] = {}
    for declaration in (style or "").split(";"):
        key, sep, val = declaration.partition(":")
        if sep and key.strip():
            declarations[key.strip()] = val.strip()
    declarations[name] = value
    return " ".join(f"{key}: {val};" for key, val in declarations.items())


@dataclass
class SlackAuthor:
    name: str
    id: str | None = None


@dataclass
class SlackMessage:
    """One extracted message.  ``author`` is None for a follow-up message."""

    author: SlackAuthor | None = None
    timestamp: datetime | None = None
    content: SafeHtml | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "author": (
                {"name": self.author.name, "id": self.author.id}
                if self.author
                else None
            ),
            "timestamp": _iso(self.timestamp) if self.timestamp else None,
            "content": str(self.content) if self.content is not None else None,
        }


def _iso(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return (
        dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    )


class ExtractSlackMessageContent(HTMLVisitor):
    """Clean the inner HTML of one ``.p-rich_text_block``."""

    def __init__(
        self,
        options: ExtractConfig | None = None,
        *,
        renderer: Renderer | None = None,
    ) -> None:
        self.options = options if options is not None else ExtractConfig()
        super().__init__(renderer=renderer)

    def registrations(self) -> Sequence[Registration]:
        return [
            on_enter("[data-qa=emoji]", self.emoji),
            on_enter("ol", self.strip_list_style),
            on_enter("ul", self.strip_list_style),
            on_exit(".c-message__edited_label", self.edited_label),
            on_exit(".c-mrkdwn__br", self.line_break),
        ]

    def emoji(self, el: Element) -> Replacement:
        if not self.options.include_emoji:
            return REMOVE

        img = el.query("img")
        if img is not None:
            img.set_attribute(
                "style", _set_style_property(img.get_attribute("style"), "top", "auto")
            )

        return Render(SafeHtml(f"<br />{el.serialize()}<br />"))

    # Get rid of Slack's list styles
    def strip_list_style(self, el: Element) -> None:
        el.remove_attribute("style")

    def edited_label(self, el: Element) -> Replacement:
        return REMOVE

    def line_break(self, el: Element) -> Replacement:
        return Markup("<br />")

    def get_results(self) -> SafeHtml:
        if self.document is None:
            return SafeHtml("")
        return SafeHtml(self.document.serialize())


class ExtractSlack(HTMLVisitor):
    """Extract every message of a copied Slack thread or channel excerpt."""

    def __init__(
        self,
        options: ExtractConfig | None = None,
        *,
        render_config: RenderConfig | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.options = options if options is not None else ExtractConfig()
        self.render_config = (
            render_config if render_config is not None else RenderConfig()
        )
        self.messages: list[SlackMessage] = []
        self.message = SlackMessage()
        self.workspace_url: str | None = None
        super().__init__(renderer=renderer)

    def registrations(self) -> Sequence[Registration]:
        return [
            on_exit("[data-qa=message_container]", self.end_message),
            on_exit("body", self.end_document),
            on_enter("[data-qa=message_sender_name]", self.sender_name),
            on_enter(".c-timestamp", self.timestamp),
            on_enter(".p-rich_text_block", self.rich_text_block),
        ]

    def end_message(self, el: Element) -> None:
        self.messages.append(self.message)
        self.message = SlackMessage()

    def end_document(self, el: Element) -> None:
        # Selections that start or end mid-message have no closing container.
        if self.message.content:
            self.messages.append(self.message)
            self.message = SlackMessage()

    def sender_name(self, el: Element) -> None:
        self.message.author = SlackAuthor(
            name=el.text.strip(),
            id=el.get_attribute("data-message-sender"),
        )

    def timestamp(self, el: Element) -> None:
        href = el.get_attribute("href")
        if not self.workspace_url and href:
            parts = urlsplit(href)
            if parts.scheme and parts.netloc:
                self.workspace_url = f"{parts.scheme}://{parts.netloc}"

        ts = el.get_attribute("data-ts")
        if ts:
            self.message.timestamp = datetime.fromtimestamp(float(ts), tz=UTC)
        else:
            logger.debug("Timestamp element without data-ts: %r", el)

    def rich_text_block(self, el: Element) -> None:
        parser = ExtractSlackMessageContent(self.options, renderer=self.renderer)
        self.message.content = parser.parse(el.inner_html)

    def get_results(self) -> list[SlackMessage]:
        return self.messages

    # -- rendering ----------------------------------------------------------

    def format_date(self, dt: datetime) -> str:
        """Format *dt* like ``October 19, 2026, 3:08 PM ET``."""
        local = dt.astimezone(ZoneInfo(self.render_config.timezone))
        hour = local.hour % 12 or 12
        meridiem = "AM" if local.hour < 12 else "PM"
        return (
            f"{local:%B} {local.day}, {local.year}, "
            f"{hour}:{local:%M} {meridiem} {self.render_config.timezone_label}"
        )

    def _render_author(self, author: SlackAuthor) -> SafeHtml:
        if self.options.author_links and self.workspace_url and author.id:
            return html_tag(
                "a", author.name, href=f"{self.workspace_url}/team/{author.id}"
            )
        return join_html([author.name])

    def _render_time(self, dt: datetime) -> SafeHtml:
        return html_tag("time", self.format_date(dt), datetime=_iso(dt))

    def render_message(self, message: SlackMessage, idx: int) -> SafeHtml:
        parts: list[str] = []
        # A message without an author continues the previous author's run.
        if message.author is not None:
            if idx > 0:
                parts.append(html_tag("hr"))
            parts.append(html_tag("strong", self._render_author(message.author)))
            if message.timestamp is not None:
                parts.append(" – ")
                parts.append(self._render_time(message.timestamp))
        parts.append(html_tag("p", message.content))
        return join_html(parts)

    def render_html(self) -> SafeHtml:
        return join_html(
            self.render_message(message, idx)
            for idx, message in enumerate(self.messages)
        )

    def render(self, target: Element) -> None:
        """Render the transcript as the children of *target*."""
        self.renderer.render(self.render_html(), target)


def extract_slack(
    raw_html: str,
    options: ExtractConfig | None = None,
    *,
    render_config: RenderConfig | None = None,
) -> SafeHtml:
    """Extract messages from *raw_html* and return the rendered transcript."""
    parser = ExtractSlack(options, render_config=render_config)
    parser.parse(raw_html)
    logger.info("Extracted %d Slack messages", len(parser.messages))
    return parser.render_html()
