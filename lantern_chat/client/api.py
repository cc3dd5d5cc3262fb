"""HTTP API client for interacting with the chat relay."""
from typing import BinaryIO, Iterable, Iterator, Optional

import requests

from ..shared.dto import MessageDTO


def parse_sse_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield the data payload of each Server-Sent Events frame.

    Comment lines (``:``) and fields other than ``data`` are skipped; a frame
    with several ``data`` lines is joined with newlines.
    """
    data_lines = []
    for line in lines:
        if line == "":
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field == "data":
            data_lines.append(value[1:] if value.startswith(" ") else value)
    if data_lines:
        yield "\n".join(data_lines)


class APIClient:
    """Relay client; the underlying session keeps the session cookie between calls."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()

    @property
    def session_id(self) -> Optional[str]:
        return self.http.cookies.get("session_id")

    def send_message(self, text: str) -> str:
        resp = self.http.post(f"{self.base_url}/send", data={"message": text}, timeout=10)
        resp.raise_for_status()
        return resp.text

    def set_nickname(self, nickname: str) -> str:
        resp = self.http.post(f"{self.base_url}/set-nickname", data={"nickname": nickname}, timeout=10)
        resp.raise_for_status()
        return resp.text

    def upload_image(self, fileobj: BinaryIO, filename: str = "image") -> str:
        resp = self.http.post(f"{self.base_url}/upload-image", files={"image": (filename, fileobj)}, timeout=30)
        resp.raise_for_status()
        return resp.text

    def fetch_image(self, blob_id: str) -> Optional[bytes]:
        resp = self.http.get(f"{self.base_url}/image/{blob_id}", timeout=10)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.content

    def join(self) -> None:
        self.http.get(f"{self.base_url}/join", timeout=10).raise_for_status()

    def leave(self) -> None:
        self.http.post(f"{self.base_url}/leave", timeout=10).raise_for_status()

    def iter_events(self) -> Iterator[MessageDTO]:
        """Stream ``/events`` and yield decoded messages until the server closes it."""
        with self.http.get(
            f"{self.base_url}/events",
            headers={"Accept": "text/event-stream"},
            stream=True,
            timeout=(10, None),
        ) as resp:
            resp.raise_for_status()
            lines = resp.iter_lines(decode_unicode=True)
            for payload in parse_sse_lines(line or "" for line in lines):
                yield MessageDTO.from_json(payload)
