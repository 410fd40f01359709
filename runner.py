"""Python API and CLI entrypoint for the chase engine.

This module provides:
- High-level ``run_chase`` API running one chase on a headless backend
- Command-line interface for standalone usage (or serving the HTTP API)
- Graceful shutdown handling
"""

import sys
import time
import argparse
import signal
from typing import Callable, List, Optional

from .engine import ChaseEngine
from .schemas import Bounds, ChaseConfig, ChaseEvent, Position, Size
from .windowing import HeadlessBackend


def run_chase(
    pursuer_position: Position = Position(x=0, y=0),
    pursuer_size: Size = Size(width=200, height=200),
    monitor: Optional[Bounds] = None,
    config: Optional[ChaseConfig] = None,
    follow: bool = False,
    poll_interval_s: float = 0.05,
    deadline_s: Optional[float] = None,
    on_result: Optional[Callable[[ChaseEvent], None]] = None
) -> List[ChaseEvent]:
    """Run one chase on a headless backend and report its outcome.

    This is the main Python API function for exercising the engine without a
    display: it spawns a target, lets the pursuer walk to it, and polls the
    one-shot flags the way a UI would.

    Args:
        pursuer_position: Initial pursuer position
        pursuer_size: Pursuer surface size
        monitor: Monitor bounds (None exercises the default-monitor fallback)
        config: Engine configuration
        follow: Also start the explicit drag-follow loop right after spawning
        poll_interval_s: Flag polling interval
        deadline_s: Give up after this many seconds (default: timeout + 1s)
        on_result: Callback function called for each ChaseEvent

    Returns:
        Events observed, in order

    Example:
        def handle_result(event: ChaseEvent):
            print(f"{event.event} in session {event.session}")

        run_chase(pursuer_position=Position(x=100, y=100), on_result=handle_result)
    """
    config = config if config is not None else ChaseConfig()
    if deadline_s is None:
        deadline_s = config.timeout_s + 1.0

    backend = HeadlessBackend(monitor=monitor, verbose=config.verbose)
    engine = ChaseEngine(backend, config)
    backend.add_surface(config.pursuer_label, pursuer_position, pursuer_size)

    # Setup signal handler for graceful shutdown
    shutdown_requested = False

    def signal_handler(signum, frame):
        nonlocal shutdown_requested
        print(f"\n[runner] Received signal {signum}, shutting down gracefully...")
        shutdown_requested = True

    previous_handlers = {
        sig: signal.signal(sig, signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }

    events: List[ChaseEvent] = []
    try:
        if config.verbose:
            print(f"[runner] Starting chase...")
            print(f"[runner] Pursuer: {pursuer_size.width}x{pursuer_size.height} at ({pursuer_position.x},{pursuer_position.y})")
            print(f"[runner] Monitor: {monitor if monitor is not None else 'default'}")
            print(f"[runner] Timeout: {config.timeout_s}s, follow: {follow}")

        engine.spawn_target(config.pursuer_label)
        if follow:
            engine.start_pumpkin_drag(config.pursuer_label)

        started = time.monotonic()
        while not events and not shutdown_requested:
            for event in engine.poll_events():
                events.append(event)
                # Call user callback if provided
                if on_result is not None:
                    try:
                        on_result(event)
                    except Exception as e:
                        print(f"[runner] Error in result callback: {e}")
            if time.monotonic() - started > deadline_s:
                print("[runner] Deadline reached without an outcome")
                break
            time.sleep(poll_interval_s)

    except KeyboardInterrupt:
        print("\n[runner] Interrupted by user")
    finally:
        engine.exit_app()
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        if config.verbose:
            print("[runner] Chase stopped")
    return events


def main():
    """Command-line interface for the chase engine."""
    parser = argparse.ArgumentParser(
        description="Speaki Chase - pursuer/decoy chase engine",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Pursuer / monitor geometry
    parser.add_argument("--pursuer-x", type=int, default=0, help="Initial pursuer X")
    parser.add_argument("--pursuer-y", type=int, default=0, help="Initial pursuer Y")
    parser.add_argument("--pursuer-size", type=int, default=200, help="Pursuer square side")
    parser.add_argument("--monitor-width", type=int, default=1920, help="Monitor width")
    parser.add_argument("--monitor-height", type=int, default=1080, help="Monitor height")

    # Chase behaviour
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Seconds before an uncaptured chase times out"
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Start the drag-follow loop after spawning"
    )

    # Output options
    parser.add_argument(
        "--output-format",
        choices=["json", "summary"],
        default="json",
        help="Output format"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational messages"
    )

    # Service mode
    parser.add_argument("--serve", action="store_true", help="Serve the HTTP command API instead")
    parser.add_argument("--host", default="0.0.0.0", help="Service host")
    parser.add_argument("--port", type=int, default=8088, help="Service port")

    args = parser.parse_args()

    if args.timeout < 0:
        parser.error("timeout must not be negative")
    if args.pursuer_size <= 0:
        parser.error("pursuer-size must be positive")
    if args.monitor_width <= 0 or args.monitor_height <= 0:
        parser.error("monitor size must be positive")

    if args.serve:
        import uvicorn

        print(f"[runner] Serving on http://{args.host}:{args.port}")
        uvicorn.run("speaki_chase.service:app", host=args.host, port=args.port, log_level="info")
        return

    def create_output_handler(format_type: str):
        if format_type == "summary":
            def summary_handler(event: ChaseEvent):
                print(f"[{event.ts}] session {event.session}: {event.event}")
            return summary_handler
        return lambda event: print(event.model_dump_json())

    output_handler = None if args.quiet else create_output_handler(args.output_format)

    try:
        run_chase(
            pursuer_position=Position(x=args.pursuer_x, y=args.pursuer_y),
            pursuer_size=Size(width=args.pursuer_size, height=args.pursuer_size),
            monitor=Bounds(x=0, y=0, width=args.monitor_width, height=args.monitor_height),
            config=ChaseConfig(timeout_s=args.timeout, verbose=not args.quiet),
            follow=args.follow,
            on_result=output_handler
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
