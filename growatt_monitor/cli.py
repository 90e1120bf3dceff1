# growatt_monitor/cli.py
import argparse

def build_parser():
    parser = argparse.ArgumentParser(
        prog="growatt-monitor",
        description="Growatt grid & battery alert monitor"
    )

    parser.add_argument(
        "--config",
        default="growatt_monitor.conf",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress stdout output (cron-friendly)"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # One-shot cycle (cron / CI schedulers)
    sub.add_parser("run", help="Run a single poll-and-alert cycle")

    # Long-running poller
    cmd_loop = sub.add_parser("loop", help="Poll forever, sleeping between cycles")
    cmd_loop.add_argument(
        "--interval",
        type=int,
        help="Override [poll] interval_seconds",
    )

    # Simulation-driven cycle
    cmd_sim = sub.add_parser(
        "simulate",
        help="Run one cycle using simulated status values from the config",
    )
    cmd_sim.add_argument(
        "--scenario",
        help="Override [simulation] scenario name",
    )
    cmd_sim.add_argument(
        "--persist",
        action="store_true",
        help="Read and write the real state database instead of an in-memory one",
    )

    # Read-only snapshot; no alerts, no state changes
    cmd_status = sub.add_parser("status", help="Fetch the current status once and print it")
    cmd_status.add_argument(
        "--simulate",
        action="store_true",
        help="Read simulated values from the config instead of the Growatt cloud",
    )
    cmd_status.add_argument(
        "--scenario",
        help="Override [simulation] scenario name (implies --simulate)",
    )

    sub.add_parser("notify-test", help="Send a test message via Telegram and Healthchecks")
    sub.add_parser("show-state", help="Print the stored alert state as JSON")
    sub.add_parser("reset-state", help="Forget what has been notified (next cycle is a first check)")

    return parser
