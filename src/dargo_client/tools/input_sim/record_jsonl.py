from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError
from websockets.asyncio.server import ServerConnection, serve

from dargo_client.logging_config import configure_logging
from dargo_client.protocol.messages import decode

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class FrameRecorder:
    """WebSocket handler that validates each client frame and appends it to a JSONL stream."""

    def __init__(self, out: TextIO, *, echo: bool = False) -> None:
        self.out = out
        self.echo = echo
        self.count = 0

    async def handler(self, ws: ServerConnection) -> None:
        peer = ws.remote_address
        logger.info("client connected: %s", peer)
        async for raw in ws:
            try:
                msg = decode(raw)
            except ValidationError as e:
                logger.warning("dropping invalid frame from %s: %s", peer, e.errors()[0].get("msg"))
                continue
            record = {"ts": _now_ms(), "msg": msg.model_dump(mode="json", by_alias=True)}
            if self.echo:
                print(f"[record] t={msg.t} msg={record['msg']}")
            self.out.write(json.dumps(record, ensure_ascii=False) + "\n")
            self.out.flush()
            self.count += 1
        logger.info("client disconnected: %s", peer)


async def record(host: str, port: int, out_path: Path, *, echo: bool) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("a", encoding="utf-8") as f:
        recorder = FrameRecorder(f, echo=echo)
        async with serve(recorder.handler, host, port, max_size=2**22) as server:
            logger.info("listening on ws://%s:%d", host, port)
            await server.serve_forever()


def main() -> None:
    ap = argparse.ArgumentParser(description="Accept client connections and record received frames to JSONL.")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8080)
    ap.add_argument("--out", required=True, help="Output JSONL path")
    ap.add_argument("--print", action="store_true", help="Print received messages to stdout")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    configure_logging(args.log_level)
    asyncio.run(record(args.host, args.port, Path(args.out), echo=args.print))


if __name__ == "__main__":
    main()
