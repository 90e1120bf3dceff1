# growatt_monitor/main.py

import json
import sys
from pathlib import Path

from .cli import build_parser
from .config import AppConfig, Config, require_credentials
from .logging import ConsoleLog, StructuredLog

from .models.alert_state import AlertState
from .services.alert_engine import AlertEngine, CycleResult
from .services.app_state import AppState
from .services.growatt_client import GrowattClient
from .services.notification_manager import NotificationManager
from .services.message_formatter import format_status_summary
from .services.poll_loop import run_forever, run_once
from .services.simulation_provider import SimulationStatusProvider

EXIT_OK = 0
EXIT_CYCLE_FAILED = 1
EXIT_CONFIG_ERROR = 2


def _cycle_reporter(notifier: NotificationManager):
    def report(result: CycleResult) -> None:
        if result.aborted:
            notifier.report_cycle(False, result.error or "")
            return
        summary = f"soc={result.snapshot.soc_percent} grid={'on' if result.snapshot.grid_on else 'off'}"
        notifier.report_cycle(True, summary)

    return report


def _build_provider(app_cfg: AppConfig, log, use_simulation: bool, scenario: str | None = None):
    if use_simulation:
        return SimulationStatusProvider(
            scenario or app_cfg.simulation.scenario,
            app_cfg.simulation.as_mapping(),
            log,
        )
    return GrowattClient(app_cfg.growatt, log)


def build_engine(app_cfg: AppConfig, provider, notifier, state, log) -> AlertEngine:
    structured_logger = StructuredLog(
        app_cfg.logging.structured_path,
        app_cfg.logging.structured_enabled,
    )
    return AlertEngine(
        state,
        provider,
        notifier,
        app_cfg.alerts.thresholds,
        log,
        structured_log=structured_logger,
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console_logger = ConsoleLog(level="DEBUG" if args.debug else "INFO", quiet=args.quiet)
    log = console_logger.setup()

    try:
        app_cfg = Config.load(args.config)
    except (FileNotFoundError, ValueError) as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    # Re-apply logging now that the config file is known.
    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()

    state_path = Path(app_cfg.state.path).expanduser() if app_cfg.state.path else None

    if args.command == "show-state":
        state = AppState(path=state_path)
        current = state.load_alert_state()
        print(json.dumps((current or AlertState()).to_dict(), indent=2))
        state.close()
        return EXIT_OK

    if args.command == "reset-state":
        state = AppState(path=state_path)
        ok = state.reset_alert_state()
        state.close()
        if ok:
            log.info("Alert state reset; the next cycle will send a first-check notification.")
            return EXIT_OK
        return EXIT_CYCLE_FAILED

    use_simulation = args.command == "simulate" or (
        args.command == "status" and (args.simulate or bool(args.scenario))
    )
    try:
        require_credentials(
            app_cfg,
            need_growatt=args.command in {"run", "loop", "status"} and not use_simulation,
        )
    except ValueError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    notifier = NotificationManager(app_cfg.telegram, app_cfg.healthchecks, log)

    if args.command == "notify-test":
        delivered = notifier.send_test_notifications()
        return EXIT_OK if delivered else EXIT_CYCLE_FAILED

    provider = _build_provider(app_cfg, log, use_simulation, getattr(args, "scenario", None))

    if args.command == "status":
        snapshot = provider.fetch_status()
        if snapshot is None:
            log.error("Status unavailable.")
            return EXIT_CYCLE_FAILED
        print(format_status_summary(snapshot))
        return EXIT_OK

    if use_simulation:
        state = AppState(path=state_path, persist=args.persist)
    else:
        state = AppState(path=state_path)

    engine = build_engine(app_cfg, provider, notifier, state, log)
    report = _cycle_reporter(notifier)

    try:
        if args.command in {"run", "simulate"}:
            result = run_once(engine, log, on_result=report)
            return EXIT_CYCLE_FAILED if result.aborted else EXIT_OK

        if args.command == "loop":
            interval = args.interval if args.interval is not None else app_cfg.poll.interval_seconds
            if interval <= 0:
                log.error("Configuration error: poll interval must be positive")
                return EXIT_CONFIG_ERROR
            log.info(
                "Polling every %ss; thresholds=%s",
                interval,
                ",".join(str(t) for t in engine.thresholds),
            )
            try:
                run_forever(engine, interval, log, on_result=report)
            except KeyboardInterrupt:
                log.info("Interrupted; exiting.")
            return EXIT_OK

        raise ValueError(f"Unsupported command: {args.command}")
    finally:
        state.close()


if __name__ == "__main__":
    sys.exit(main())
