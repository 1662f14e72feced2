#!/usr/bin/env python3
"""Watch a live geo query against a Firebase Realtime Database.

Reads ``GEOFIRE_DATABASE_URL`` (and optional ``GEOFIRE_PATH``,
``GEOFIRE_AUTH_TOKEN``) from the environment, opens a query around the given
center and prints every entered/exited/moved event until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pygeofire import FirebaseConfig, FirebaseStore, GeoFire, Location  # noqa: E402
from pygeofire.exceptions import GeoFireError  # noqa: E402

_LOG = logging.getLogger("watch_query")


@dataclass
class WatchStats:
    started_at: float
    counts: dict[str, int] = field(default_factory=dict)

    def on_event(self, event: str) -> None:
        self.counts[event] = self.counts.get(event, 0) + 1


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print live geo query events.")
    parser.add_argument("latitude", type=float, help="Latitude of the query center.")
    parser.add_argument("longitude", type=float, help="Longitude of the query center.")
    parser.add_argument("radius", type=float, help="Query radius in kilometers.")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _printer(event: str, stats: WatchStats):  # noqa: ANN202
    def _print(key: str, location: Location | None, distance: float | None) -> None:
        stats.on_event(event)
        where = f"{location[0]:.6f},{location[1]:.6f}" if location is not None else "-"
        how_far = f"{distance:.3f} km" if distance is not None else "-"
        print(f"[watch] {event:<11} {key:<24} {where:<24} {how_far}")

    return _print


def _print_summary(stats: WatchStats) -> None:
    runtime = time.time() - stats.started_at
    print("[watch] Summary")
    print(f"[watch]   runtime_s : {runtime:.1f}")
    for event, count in sorted(stats.counts.items()):
        print(f"[watch]   {event:<11}: {count}")


async def _watch(args: argparse.Namespace, stats: WatchStats) -> None:
    async with FirebaseStore(FirebaseConfig.from_env()) as store:
        geofire = GeoFire(store)
        query = geofire.query(center=(args.latitude, args.longitude), radius=args.radius)
        for event in ("key_entered", "key_exited", "key_moved"):
            query.on(event, _printer(event, stats))
        async with query:
            _LOG.info("Query ready, %d range(s) subscribed", len(query.active_ranges))
            if args.duration > 0:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    stats = WatchStats(started_at=time.time())
    try:
        asyncio.run(_watch(args, stats))
    except KeyboardInterrupt:
        pass
    except GeoFireError as exc:
        print(f"[watch] Failed: {exc}", file=sys.stderr)
        return 2
    finally:
        _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
