"""Shared fixtures for unit tests."""

from __future__ import annotations

import os

import pytest

from slackpaste.config import get_settings

# Two messages by Ada (the second one a follow-up without a sender header),
# then one by Grace.  Shaped like the markup the Slack web client puts on the
# clipboard, trimmed to the attributes the extractor reads.
SLACK_THREAD_HTML = """
<div class="c-virtual_list__scroll_container" role="list">
  <div class="c-virtual_list__item" role="listitem">
    <div class="c-message_kit__background" data-qa="message_container">
      <span class="c-message__sender">
        <a class="c-message__sender_link" data-qa="message_sender_name"
           data-message-sender="U012AB3CD" href="#">Ada Lovelace</a>
      </span>
      <a class="c-link c-timestamp" data-ts="1700000000.000100"
         href="https://acme.slack.com/archives/C024BE91L/p1700000000000100"
         ><span class="c-timestamp__label">5:13 PM</span></a>
      <div class="c-message_kit__blocks">
        <div class="p-rich_text_block" dir="auto"><div class="p-rich_text_section">Hello <b>team</b><span class="c-mrkdwn__br" data-stringify-type="paragraph-break"></span>second line<span class="c-message__edited_label" data-qa="message_edited_label">(edited)</span></div></div>
      </div>
    </div>
  </div>
  <div class="c-virtual_list__item" role="listitem">
    <div class="c-message_kit__background" data-qa="message_container">
      <a class="c-link c-timestamp" data-ts="1700000060"
         href="https://acme.slack.com/archives/C024BE91L/p1700000060000000"
         ><span class="c-timestamp__label">5:14</span></a>
      <div class="c-message_kit__blocks">
        <div class="p-rich_text_block" dir="auto"><ul class="p-rich_text_list" style="list-style-type: disc"><li>first point</li></ul><span data-qa="emoji" class="c-emoji"><img src="party.png" alt=":party:" style="top: -2px"></span></div>
      </div>
    </div>
  </div>
  <div class="c-virtual_list__item" role="listitem">
    <div class="c-message_kit__background" data-qa="message_container">
      <span class="c-message__sender">
        <a class="c-message__sender_link" data-qa="message_sender_name"
           data-message-sender="U099ZZ9ZZ" href="#">Grace Hopper</a>
      </span>
      <a class="c-link c-timestamp" data-ts="1700003600"
         href="https://other.slack.com/archives/C024BE91L/p1700003600000000"
         ><span class="c-timestamp__label">6:13 PM</span></a>
      <div class="c-message_kit__blocks">
        <div class="p-rich_text_block" dir="auto"><div class="p-rich_text_section">Ship it &amp; see</div></div>
      </div>
    </div>
  </div>
</div>
"""


@pytest.fixture
def slack_thread_html() -> str:
    return SLACK_THREAD_HTML


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep developer env vars out of settings-dependent tests."""
    for key in list(os.environ):
        if key.startswith(("EXTRACT__", "RENDER__", "APP__")):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
