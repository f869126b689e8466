from __future__ import annotations
import argparse, asyncio, json, os, sys

from . import config as CFG
from .display import display_record
from .engine import Engine
from .models import Row
from .scheduler import ImmediateScheduler


def _supports_color() -> bool:
    return sys.stdout.isatty() and os.environ.get("NO_COLOR", "") == ""

CSI = "\033["
def _c(text: str, code: str) -> str:
    if not _supports_color(): return text
    return f"{CSI}{code}m{text}{CSI}0m"


class ConsoleSink:
    """Prints revealed rows as a table (or JSON lines) and status lines dimmed."""

    def __init__(self, as_json: bool = False) -> None:
        self.as_json = as_json
        self.rank = 0
        self.more = False

    def clear(self) -> None:
        self.rank = 0

    def loading(self, active: bool) -> None:
        pass

    def status(self, message: str) -> None:
        if not self.as_json:
            print(_c(f"[{message}]", "2;37"))

    def reveal(self, row: Row, delay: float) -> None:
        self.rank += 1
        if self.as_json:
            print(json.dumps(row, ensure_ascii=False))
            return
        d = display_record(row)
        print(f"{self.rank:<4} {d['mark'][:36]:<36} {d['serial']:<10} {d['class']:<5} {d['filed']:<10} {d['owner'][:30]}")

    def more_available(self, available: bool) -> None:
        self.more = available


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Chunk search CLI (Engine-backed)")
    p.add_argument("--source", default=CFG.DEFAULT_SOURCE,
                   help="Chunk location: https://host/dir, file:///dir, a directory, or memory://")
    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--range-map", default=None, help="JSON range map (static strategy)")
    g.add_argument("--probe", nargs=2, type=int, metavar=("MIN", "MAX"),
                   help="Probe integer chunk ids MIN..MAX (dynamic strategy)")

    p.add_argument("--q", default=None, help="Single query to run once")
    p.add_argument("--repl", action="store_true", help="Interactive loop after init")
    p.add_argument("--json", action="store_true", help="Emit rows as JSON lines")
    p.add_argument("--page-size", type=int, default=CFG.RESULTS_PER_PAGE)
    p.add_argument("--batch-size", type=int, default=CFG.BATCH_SIZE)
    p.add_argument("--cache-size", type=int, default=CFG.MAX_CACHE_SIZE)
    p.add_argument("--name-template", default=CFG.CHUNK_NAME_TEMPLATE)
    p.add_argument("--no-delay", action="store_true", help="Disable pacing delays")
    p.add_argument("--verbose", action="store_true")

    args = p.parse_args(argv)

    sink = ConsoleSink(as_json=args.json)
    pacing = {}
    if args.no_delay:
        pacing = {"scheduler": ImmediateScheduler()}

    eng = Engine.create(
        args.source,
        range_map=args.range_map,
        probe=tuple(args.probe) if args.probe else None,
        cache_size=args.cache_size,
        name_template=args.name_template,
        verbose=args.verbose,
        sink=sink,
        page_size=args.page_size,
        batch_size=args.batch_size,
        **pacing,
    )

    async def run() -> int:
        if not await eng.initialize():
            return 1

        if args.q:
            await eng.search(args.q)

        if args.repl:
            print("Type a query and press Enter (empty line to exit). ':more' shows the next page.")
            while True:
                try:
                    q = input("> ").strip()
                except (EOFError, KeyboardInterrupt):
                    break
                if not q:
                    break
                if q == ":more":
                    if not await eng.reveal_more():
                        print(_c("(nothing more to show)", "2;37"))
                    continue
                await eng.search(q)
        return 0

    try:
        return asyncio.run(run())
    finally:
        eng.shutdown()

if __name__ == "__main__":
    raise SystemExit(main())
