# growatt_monitor/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser
import os
from typing import Mapping


DEFAULT_THRESHOLDS = (30, 20, 10)
DEFAULT_POLL_SECONDS = 300


@dataclass
class GrowattConfig:
    username: str | None = None
    password: str | None = None
    server: str = "https://server.growatt.com"
    timeout: float = 20.0
    plant_id: str | None = None
    device_sn: str | None = None


@dataclass
class TelegramConfig:
    bot_token: str | None = None
    chat_id: str | None = None
    enabled: bool = True
    timeout: float = 10.0
    api_base: str = "https://api.telegram.org"


@dataclass
class HealthchecksConfig:
    ping_url: str | None = None
    enabled: bool = False


@dataclass
class AlertsConfig:
    thresholds: tuple[int, ...] = DEFAULT_THRESHOLDS


@dataclass
class PollConfig:
    interval_seconds: int = DEFAULT_POLL_SECONDS


@dataclass
class StateConfig:
    path: str | None = None


@dataclass
class SimulationConfig:
    scenario: str | None = None
    settings: dict[str, str] = field(default_factory=dict)
    scenarios: dict[str, dict[str, str]] = field(default_factory=dict)

    def as_mapping(self) -> dict[str, dict[str, str] | str]:
        root: dict[str, dict[str, str] | str] = dict(self.settings)
        for name, values in self.scenarios.items():
            root[name] = dict(values)
        return root


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    growatt: GrowattConfig
    telegram: TelegramConfig
    healthchecks: HealthchecksConfig
    alerts: AlertsConfig
    poll: PollConfig
    state: StateConfig
    simulation: SimulationConfig
    logging: LoggingConfig


def parse_thresholds(raw: str) -> tuple[int, ...]:
    """Parse a comma list such as ``"30,20,10"`` into a descending ladder."""
    values: set[int] = set()
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            values.add(int(item))
        except ValueError:
            raise ValueError(f"[alerts] thresholds: '{item}' is not an integer") from None
    if not values:
        raise ValueError("[alerts] thresholds must list at least one value")
    return tuple(sorted(values, reverse=True))


class Config:
    def __init__(self, path: str, *, required: bool = True):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read and required:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str, env: Mapping[str, str] | None = None) -> AppConfig:
        """Load and validate the INI file, applying environment overrides.

        A missing file is tolerated only when the environment provides the
        Growatt and Telegram credentials on its own.
        """
        env = os.environ if env is None else env
        env_has_credentials = all(
            env.get(k) for k in ("GROWATT_USER", "GROWATT_PASS", "TG_TOKEN", "TG_CHAT_ID")
        )
        cfg = cls(path, required=not env_has_credentials)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        def _maybe_str(raw: str | None) -> str | None:
            if raw is None:
                return None
            raw = raw.strip()
            return raw or None

        # --- Growatt ---
        growatt_kwargs = {}
        if "growatt" in p:
            gw_sec = p["growatt"]
            for key in ("username", "password", "plant_id", "device_sn"):
                if (value := _maybe_str(gw_sec.get(key))) is not None:
                    growatt_kwargs[key] = value
            if "server" in gw_sec:
                growatt_kwargs["server"] = gw_sec["server"].strip()
            if "timeout" in gw_sec:
                growatt_kwargs["timeout"] = float(gw_sec["timeout"])
        if env.get("GROWATT_USER"):
            growatt_kwargs["username"] = env["GROWATT_USER"]
        if env.get("GROWATT_PASS"):
            growatt_kwargs["password"] = env["GROWATT_PASS"]
        growatt = GrowattConfig(**growatt_kwargs)

        # --- Telegram ---
        telegram_kwargs = {}
        if "telegram" in p:
            tg_sec = p["telegram"]
            if (token := _maybe_str(tg_sec.get("bot_token"))) is not None:
                telegram_kwargs["bot_token"] = token
            if (chat_id := _maybe_str(tg_sec.get("chat_id"))) is not None:
                telegram_kwargs["chat_id"] = chat_id
            if "enabled" in tg_sec:
                telegram_kwargs["enabled"] = _as_bool(tg_sec["enabled"])
            if "timeout" in tg_sec:
                telegram_kwargs["timeout"] = float(tg_sec["timeout"])
            if "api_base" in tg_sec:
                telegram_kwargs["api_base"] = tg_sec["api_base"].strip()
        if env.get("TG_TOKEN"):
            telegram_kwargs["bot_token"] = env["TG_TOKEN"]
        if env.get("TG_CHAT_ID"):
            telegram_kwargs["chat_id"] = env["TG_CHAT_ID"]
        telegram = TelegramConfig(**telegram_kwargs)

        # --- Healthchecks ---
        healthchecks_kwargs = {}
        if "healthchecks" in p:
            hc_sec = p["healthchecks"]
            if "ping_url" in hc_sec:
                healthchecks_kwargs["ping_url"] = hc_sec["ping_url"]
            if "enabled" in hc_sec:
                healthchecks_kwargs["enabled"] = _as_bool(hc_sec["enabled"])
        healthchecks = HealthchecksConfig(**healthchecks_kwargs)

        # --- Alerts ---
        raw_thresholds = None
        if "alerts" in p and "thresholds" in p["alerts"]:
            raw_thresholds = p["alerts"]["thresholds"]
        if env.get("THRESHOLDS"):
            raw_thresholds = env["THRESHOLDS"]
        alerts = AlertsConfig()
        if raw_thresholds is not None:
            alerts = AlertsConfig(thresholds=parse_thresholds(raw_thresholds))

        # --- Poll ---
        raw_interval = None
        if "poll" in p and "interval_seconds" in p["poll"]:
            raw_interval = p["poll"]["interval_seconds"]
        if env.get("POLL_SECONDS"):
            raw_interval = env["POLL_SECONDS"]
        poll = PollConfig()
        if raw_interval is not None:
            try:
                interval = int(raw_interval)
            except ValueError:
                raise ValueError(f"[poll] interval_seconds: '{raw_interval}' is not an integer") from None
            if interval <= 0:
                raise ValueError("[poll] interval_seconds must be positive")
            poll = PollConfig(interval_seconds=interval)

        # --- State ---
        state_kwargs = {}
        if "state" in p and "path" in p["state"]:
            state_kwargs["path"] = p["state"]["path"]
        state_cfg = StateConfig(**state_kwargs)

        # --- Simulation ---
        sim_scenario: str | None = None
        sim_settings: dict[str, str] = {}
        if "simulation" in p:
            sim_sec = p["simulation"]
            for key, value in sim_sec.items():
                if key == "scenario":
                    sim_scenario = _maybe_str(value)
                    continue
                sim_settings[key] = value

        sim_scenarios: dict[str, dict[str, str]] = {}
        for section in p.sections():
            if not section.startswith("simulation:"):
                continue
            scenario_name = section.split(":", 1)[1].strip()
            if not scenario_name:
                continue
            sim_scenarios[scenario_name] = dict(p[section])

        simulation_cfg = SimulationConfig(
            scenario=sim_scenario,
            settings=sim_settings,
            scenarios=sim_scenarios,
        )

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            growatt=growatt,
            telegram=telegram,
            healthchecks=healthchecks,
            alerts=alerts,
            poll=poll,
            state=state_cfg,
            simulation=simulation_cfg,
            logging=logging_cfg,
        )


def require_credentials(app_cfg: AppConfig, *, need_growatt: bool = True) -> None:
    """Raise ValueError when collaborators cannot be built from the config."""
    missing = []
    if need_growatt:
        if not app_cfg.growatt.username:
            missing.append("[growatt] username (or GROWATT_USER)")
        if not app_cfg.growatt.password:
            missing.append("[growatt] password (or GROWATT_PASS)")
    if app_cfg.telegram.enabled:
        if not app_cfg.telegram.bot_token:
            missing.append("[telegram] bot_token (or TG_TOKEN)")
        if not app_cfg.telegram.chat_id:
            missing.append("[telegram] chat_id (or TG_CHAT_ID)")
    if missing:
        raise ValueError("Missing required settings: " + ", ".join(missing))
