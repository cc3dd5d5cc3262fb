"""Console client for the chat relay."""
import argparse
import html
import sys
import threading

import requests

from .api import APIClient
from ..shared.dto import MessageDTO
from ..shared.utils import is_valid_nickname


def format_message(msg: MessageDTO) -> str:
    content = html.unescape(msg.content)
    if msg.kind == "image":
        content = f"<image {content}>"
    if msg.author is not None:
        return f"[{msg.author.nickname}]: {content}"
    prefix = "(private) " if msg.private else ""
    return f"{prefix}* {content}"


class ChatClient:
    """Prints the live stream on a background thread and sends stdin lines."""

    def __init__(self, server_url: str):
        self.api = APIClient(server_url)
        self._listener = threading.Thread(target=self._listen, daemon=True)

    def _listen(self) -> None:
        try:
            for msg in self.api.iter_events():
                print(format_message(msg), flush=True)
        except requests.RequestException as exc:
            print(f"Stream closed: {exc}", file=sys.stderr)

    def run(self, nickname: str) -> None:
        print(self.api.set_nickname(nickname))
        self._listener.start()
        self.api.join()
        try:
            for line in sys.stdin:
                text = line.rstrip("\n")
                if not text:
                    continue
                try:
                    self.api.send_message(text)
                except requests.HTTPError as exc:
                    print(f"Not sent: {exc.response.text}", file=sys.stderr)
        except KeyboardInterrupt:
            pass
        finally:
            self.api.leave()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Lantern chat console client")
    parser.add_argument("nickname")
    parser.add_argument("--server", default="http://127.0.0.1:8080")
    args = parser.parse_args(argv)

    if not is_valid_nickname(args.nickname):
        print("Nickname must be non-empty and contain no spaces.", file=sys.stderr)
        return 2
    try:
        ChatClient(args.server).run(args.nickname)
    except requests.RequestException as exc:
        print(f"Could not reach {args.server}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
