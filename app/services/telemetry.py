# app/services/telemetry.py
"""
Captura de señales anti-trampa enviadas con cada guardado/envío.
Se almacenan tal cual para revisión posterior; no afectan la calificación.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Telemetry:
    tab_switches: int = 0
    copy_attempts: int = 0
    suspicious_activity: List[Any] = field(default_factory=list)

    def as_columns(self) -> Dict[str, Any]:
        return {
            "tab_switches": self.tab_switches,
            "copy_attempts": self.copy_attempts,
            "suspicious_activity": self.suspicious_activity,
        }


def coerce_count(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def capture(tab_switches: Any = 0, copy_attempts: Any = 0,
            suspicious_activity: Any = None) -> Telemetry:
    return Telemetry(
        tab_switches=coerce_count(tab_switches),
        copy_attempts=coerce_count(copy_attempts),
        suspicious_activity=list(suspicious_activity) if isinstance(suspicious_activity, list) else [],
    )
