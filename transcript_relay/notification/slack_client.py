from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from transcript_relay.errors import NotificationError

class SlackClient:
    """
    Posts transcripts to a Slack incoming webhook.
    """
    def __init__(self, webhook_url: str, logger=None, timeout_sec: float = 10.0):
        self.webhook_url = webhook_url
        self.logger = logger
        self.timeout = aiohttp.ClientTimeout(total=timeout_sec)

    @staticmethod
    def build_transcript_message(original: str, translated: Optional[str] = None,
                                 posted_at: Optional[datetime] = None) -> Dict[str, Any]:
        blocks: List[Dict[str, Any]] = [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Original:*\n{original}"},
            },
        ]

        if translated:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Translated:*\n{translated}"},
            })

        posted_at = posted_at or datetime.now()
        blocks.append({
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"_{posted_at.strftime('%Y/%m/%d %H:%M:%S')}_"},
            ],
        })

        return {"text": original, "blocks": blocks}

    async def post_message(self, text: str):
        await self.post({"text": text})

    async def post_transcript(self, original: str, translated: Optional[str] = None):
        await self.post(self.build_transcript_message(original, translated))

    async def post(self, message: Dict[str, Any]):
        if not self.webhook_url:
            raise NotificationError("Slack Webhook URL is not set")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.webhook_url, json=message) as resp:
                    if resp.status >= 300:
                        error_text = await resp.text()
                        raise NotificationError(f"Slack Webhook error: {resp.status} - {error_text}")
        except aiohttp.ClientError as e:
            raise NotificationError(f"Slack request failed: {e}") from e
