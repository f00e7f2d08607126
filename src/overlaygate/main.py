"""Headless focus feed: one ``process<TAB>title`` line per focus change."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from overlaygate.config import GateSettings, load_settings
from overlaygate.core.app import GateContext, build_context
from overlaygate.core.events import OVERLAY_VISIBILITY, WINDOW_CHANGED, VisibilityChanged, WindowChanged
from overlaygate.logging import configure_logging, get_logger
from overlaygate.utils.process import SingleInstance


def parse_focus_line(line: str) -> WindowChanged | None:
    line = line.rstrip("\r\n")
    if not line.strip():
        return None
    process_name, _, window_title = line.partition("\t")
    return WindowChanged(process_name=process_name.strip(), window_title=window_title)


def run_feed(ctx: GateContext, lines: Iterable[str], out: TextIO) -> int:
    """Publish each focus line on the bus and echo the resulting decision."""

    def report(event: VisibilityChanged) -> None:
        out.write(("show" if event.visible else "hide") + "\n")
        out.flush()

    detach = ctx.events.subscribe(OVERLAY_VISIBILITY, report)
    ctx.start()
    handled = 0
    try:
        for line in lines:
            event = parse_focus_line(line)
            if event is None:
                continue
            ctx.events.emit(WINDOW_CHANGED, event)
            handled += 1
    finally:
        ctx.stop()
        detach()
    return handled


def main(settings: GateSettings | None = None) -> None:
    settings = settings or load_settings()
    configure_logging(settings)
    logger = get_logger("main")

    with SingleInstance(settings.paths.base_dir / "overlaygate.lock"):
        ctx = build_context(settings)
        logger.info("overlaygate feed ready")
        handled = run_feed(ctx, sys.stdin, sys.stdout)
        logger.info("Focus feed closed after {} event(s)", handled)


if __name__ == "__main__":
    main()
