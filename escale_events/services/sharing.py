"""Share payloads for the native share sheet or the clipboard fallback."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import APP_NAME, SHARE_URL
from ..models.event import EventItem


@dataclass(frozen=True)
class SharePayload:
    title: str
    text: str
    url: str

    @property
    def clipboard_text(self) -> str:
        return f"{self.text}\n{self.url}"


def build_share_payload(event: EventItem, url: str = SHARE_URL) -> SharePayload:
    text = (
        f"Check out this student event in Paris: {event.title}\n"
        f"📅 {event.date}\n"
        f"📍 {event.location}\n\n"
        f"Join via {APP_NAME}!"
    )
    return SharePayload(title=event.title, text=text, url=url)


__all__ = ["SharePayload", "build_share_payload"]
