from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from dargo_client.config import Settings, get_settings
from dargo_client.connection import ConnectionManager
from dargo_client.errors import RetriesExhaustedError
from dargo_client.events import PointerEvent, Surface, Touch, TouchEvent
from dargo_client.logging_config import configure_logging
from dargo_client.session import TrackpadSession, select_input_strategy
from dargo_client.state import ConnectionState

logger = logging.getLogger(__name__)

KINDS = ("update", "end", "resize")


@dataclass(frozen=True)
class InputRecord:
    ts: int | None
    kind: str
    event: PointerEvent | TouchEvent | Surface


def parse_record(obj: dict) -> InputRecord:
    """
    One JSONL line -> InputRecord.

    {"ts": 1700000000000, "kind": "update", "event": {"pointer_id": 1, "offset_x": 10, ...}}
    {"kind": "end", "event": {"changed_touches": [{"identifier": 0, ...}]}}
    {"kind": "resize", "event": {"width": 800, "height": 600, "device_pixel_ratio": 2}}
    """
    kind = obj.get("kind")
    if kind not in KINDS:
        raise ValueError(f"unknown record kind: {kind!r}")
    raw = obj.get("event")
    if not isinstance(raw, dict):
        raise ValueError("record missing 'event' object")

    ev: PointerEvent | TouchEvent | Surface
    if kind == "resize":
        ev = Surface(**raw)
    elif "changed_touches" in raw:
        ev = TouchEvent(changed_touches=tuple(Touch(**t) for t in raw["changed_touches"]))
    else:
        ev = PointerEvent(**raw)

    ts = obj.get("ts")
    return InputRecord(int(ts) if isinstance(ts, (int, float)) else None, kind, ev)


def load_records(jsonl_path: Path) -> list[InputRecord]:
    out: list[InputRecord] = []
    for n, line in enumerate(jsonl_path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            out.append(parse_record(json.loads(line)))
        except (ValueError, TypeError) as e:
            raise ValueError(f"{jsonl_path}:{n}: {e}") from e
    return out


async def _wait_connected(manager: ConnectionManager) -> None:
    """Return once connected; raise RetriesExhaustedError if that never happens."""
    connected = asyncio.Event()

    def _on_change(state: ConnectionState) -> None:
        if state == ConnectionState.CONNECTED:
            connected.set()

    manager.subscribe(_on_change)
    try:
        if manager.state == ConnectionState.CONNECTED:
            return
        waiter = asyncio.ensure_future(manager.wait_closed())
        conn = asyncio.ensure_future(connected.wait())
        done, pending = await asyncio.wait({waiter, conn}, return_when=asyncio.FIRST_COMPLETED)
        for p in pending:
            p.cancel()
        if waiter in done:
            waiter.result()
            raise RuntimeError("manager closed before connecting")
    finally:
        manager.unsubscribe(_on_change)


async def replay(
    records: list[InputRecord],
    settings: Settings,
    *,
    surface: Surface,
    speed: float = 1.0,
    default_dt_ms: int = 0,
    manager: ConnectionManager | None = None,
) -> int:
    """Replay raw input records through a TrackpadSession. Returns the number of frames sent."""
    manager = manager or ConnectionManager.from_settings(settings)
    session = TrackpadSession(manager, surface, select_input_strategy(settings.use_touch_events))
    sent = 0
    try:
        await _wait_connected(manager)

        prev_ts: int | None = None
        for rec in records:
            if rec.ts is not None and prev_ts is not None:
                dt_ms = max(0, rec.ts - prev_ts)
            else:
                dt_ms = default_dt_ms
            prev_ts = rec.ts if rec.ts is not None else prev_ts
            if dt_ms:
                await asyncio.sleep((dt_ms / 1000.0) / max(0.01, speed))

            if rec.kind == "resize":
                await session.resize(rec.event)  # type: ignore[arg-type]
                continue
            handler = session.updated if rec.kind == "update" else session.ended
            if await handler(rec.event):  # type: ignore[arg-type]
                sent += 1
            else:
                logger.debug("skipped %s record (state=%s)", rec.kind, manager.state.value)
    finally:
        await manager.close()
    await manager.wait_closed()
    return sent


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay recorded pointer/touch input into the trackpad server.")
    ap.add_argument("--ws", default=None, help="WebSocket URL, e.g. ws://127.0.0.1:8080/api/socket")
    ap.add_argument("--in", dest="inp", required=True, help="Input JSONL path")
    ap.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (2.0 = 2x faster)")
    ap.add_argument("--default-dt-ms", type=int, default=0, help="Delay between records if no timestamps")
    ap.add_argument("--max-retries", type=int, default=None)
    ap.add_argument("--touch", action="store_true", help="Treat the input as touch events")
    ap.add_argument("--width", type=int, default=1024)
    ap.add_argument("--height", type=int, default=768)
    ap.add_argument("--dpr", type=float, default=1.0, help="Device pixel ratio of the capture surface")
    args = ap.parse_args()

    updates: dict[str, object] = {}
    if args.ws:
        updates["endpoint_url"] = args.ws
    if args.max_retries is not None:
        updates["max_retries"] = args.max_retries
    if args.touch:
        updates["use_touch_events"] = True
    settings = get_settings().model_copy(update=updates)
    configure_logging(settings.log_level)

    records = load_records(Path(args.inp))
    try:
        sent = asyncio.run(
            replay(
                records,
                settings,
                surface=Surface(args.width, args.height, args.dpr),
                speed=args.speed,
                default_dt_ms=args.default_dt_ms,
            )
        )
    except RetriesExhaustedError as e:
        raise SystemExit(f"[replay] {e}: {e.__cause__}") from e
    print(f"[replay] sent {sent} of {len(records)} records")


if __name__ == "__main__":
    main()
