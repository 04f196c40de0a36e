"""Team notifications through a Slack incoming webhook."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from app.exceptions import NotificationFailure
from app.models.submission import ArtifactSummary, NotificationRecord

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Delivers one structured message per submission."""

    @abstractmethod
    def send(self, record: NotificationRecord) -> None:
        """
        Sends a notification.

        Raises:
            NotificationFailure: If delivery fails.
        """


def _artifact_section(label: str, link_text: str, artifact: ArtifactSummary) -> dict[str, Any]:
    return {
        "type": "section",
        "text": {
            "type": "mrkdwn",
            "text": (
                f"*{label}:*\n{artifact.size_mb} MB • {artifact.duration:.1f}s\n"
                f"<{artifact.url}|{link_text}>"
            ),
        },
    }


def build_slack_message(record: NotificationRecord, title: str = "New Audio Upload") -> dict[str, Any]:
    """Build a Block Kit payload for a submission."""
    fields = [{"type": "mrkdwn", "text": f"*Name:*\n{record.user_name}"}]
    if record.user_email:
        fields.append({"type": "mrkdwn", "text": f"*Email:*\n{record.user_email}"})
    fields.append({"type": "mrkdwn", "text": f"*Uploaded:*\n{record.timestamp}"})

    blocks: list[dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": title}},
        {"type": "section", "fields": fields},
    ]

    if record.raw:
        blocks.append(_artifact_section("Raw Audio", "Download Raw Audio", record.raw))
    if record.enhanced:
        blocks.append(_artifact_section("AI Enhanced Audio", "Download Enhanced Audio", record.enhanced))
    if record.error:
        # No raw artifact means the submission itself failed, not just enhancement.
        heading = "Enhancement unavailable" if record.raw else "Submission failed"
        blocks.append(
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*:warning: {heading}:*\n{record.error}"},
            }
        )

    blocks.append({"type": "divider"})
    return {"text": title, "blocks": blocks}


class SlackNotifier(Notifier):
    """Posts submission summaries to a Slack channel."""

    def __init__(
        self,
        webhook_url: str,
        *,
        title: str = "New Audio Upload",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._title = title
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, record: NotificationRecord) -> None:
        payload = build_slack_message(record, self._title)
        try:
            response = self._client.post(self._webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationFailure(f"Slack returned {e.response.status_code}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NotificationFailure(e) from e

        logger.info("Slack notification sent for %s", record.user_name)
