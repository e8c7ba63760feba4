"""Modelo de dominio para lecturas de sensores ambientales."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ...errors import InvalidReading

# Nombre canónico -> alias aceptados (wire del dispositivo primero).
FIELD_ALIASES = {
    "device_id": ("deviceId", "device_id"),
    "timestamp": ("ts", "timestamp"),
    "temperature_centi": ("t_c_x100", "temperature_centi"),
    "humidity_centi": ("rh_x100", "humidity_centi"),
    "pressure_pa": ("p_pa", "pressure_pa"),
    "gas": ("gas",),
}

NUMERIC_FIELDS = ("timestamp", "temperature_centi", "humidity_centi", "pressure_pa", "gas")


def require_int(field: str, value: Any) -> int:
    # bool es subclase de int; no es una lectura válida.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidReading(field, value)
    return value


@dataclass(frozen=True)
class Reading:
    """Lectura de sensor inmutable.

    Valores en enteros escalados tal como los envía el firmware:
    temperatura y humedad en centésimas, presión en Pa, gas en unidades crudas.
    El orden dentro de un batch lo define el llamador; el core no reordena.
    """
    timestamp: int
    temperature_centi: int
    humidity_centi: int
    pressure_pa: int
    gas: int
    device_id: Optional[str] = None

    def __post_init__(self) -> None:
        for name in NUMERIC_FIELDS:
            require_int(name, getattr(self, name))
        if self.device_id is not None and not isinstance(self.device_id, str):
            raise InvalidReading("device_id", self.device_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reading":
        """Construye una lectura aceptando camelCase/wire o snake_case."""
        values: dict[str, Any] = {}
        for name, aliases in FIELD_ALIASES.items():
            for alias in aliases:
                if alias in data:
                    values[name] = data[alias]
                    break
        for name in NUMERIC_FIELDS:
            if name not in values:
                raise InvalidReading(name, None)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Formato wire del dispositivo (el mismo que se cifra y se pinea)."""
        out: dict[str, Any] = {}
        if self.device_id is not None:
            out["deviceId"] = self.device_id
        out.update(
            {
                "ts": self.timestamp,
                "t_c_x100": self.temperature_centi,
                "rh_x100": self.humidity_centi,
                "p_pa": self.pressure_pa,
                "gas": self.gas,
            }
        )
        return out
