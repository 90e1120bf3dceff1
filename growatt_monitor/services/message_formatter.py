# growatt_monitor/services/message_formatter.py

from __future__ import annotations

from growatt_monitor.models.status import StatusSnapshot


def grid_label(grid_on: bool) -> str:
    return "ON ✅" if grid_on else "OFF ❌"


def soc_label(snapshot: StatusSnapshot) -> str:
    if not snapshot.soc_known:
        return "unknown"
    return f"{snapshot.soc_percent}%"


def _power_line(snapshot: StatusSnapshot) -> str:
    return (
        f"⚡ Load {snapshot.load_watts:.0f}W | "
        f"☀️ PV {snapshot.pv_watts:.0f}W | "
        f"🔋 {snapshot.battery_volts:.1f}V"
    )


def format_first_check(snapshot: StatusSnapshot) -> str:
    return (
        f"🔌 Grid status: {grid_label(snapshot.grid_on)} (first check)\n"
        f"🔋 Battery {soc_label(snapshot)}"
    )


def format_grid_change(snapshot: StatusSnapshot) -> str:
    return (
        f"🔌 Grid changed: {grid_label(snapshot.grid_on)} | "
        f"vIn={snapshot.input_voltage:.1f}V fIn={snapshot.input_frequency:.1f}Hz\n"
        f"🔋 Battery {soc_label(snapshot)} | {_power_line(snapshot)}"
    )


def format_battery_low(snapshot: StatusSnapshot, threshold: int) -> str:
    return (
        f"⚠️ Battery low: {soc_label(snapshot)} (<= {threshold}%)\n"
        f"🔌 Grid: {grid_label(snapshot.grid_on)} | {_power_line(snapshot)}"
    )


def format_status_summary(snapshot: StatusSnapshot) -> str:
    """Multi-line status block printed by the ``status`` command."""
    lines = [
        f"🔋 Battery: {soc_label(snapshot)} ({snapshot.battery_volts:.1f}V)",
        f"🔌 Grid: {grid_label(snapshot.grid_on)} "
        f"(vIn={snapshot.input_voltage:.1f}V fIn={snapshot.input_frequency:.1f}Hz)",
        f"⚡ Load: {snapshot.load_watts:.0f}W | ☀️ PV: {snapshot.pv_watts:.0f}W",
    ]
    if snapshot.device_sn:
        lines.append(f"🆔 {snapshot.device_sn}")
    return "\n".join(lines)
