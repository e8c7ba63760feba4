"""Lecturas sintéticas para demos y dry-runs."""

from __future__ import annotations

import random
import time
from typing import List, Optional

from checkpoint_api.core.domain import Reading


def generate_readings(
    n: int,
    start_ts: Optional[int] = None,
    rng: Optional[random.Random] = None,
    device_id: Optional[str] = None,
) -> List[Reading]:
    """Genera n lecturas a 1 Hz a partir de start_ts.

    Rangos: 34.00-36.49 °C, 45-60 %RH, 100000-100499 Pa, gas 150-179.
    """
    rng = rng or random.Random()
    if start_ts is None:
        start_ts = int(time.time())

    return [
        Reading(
            timestamp=start_ts + i,
            temperature_centi=3400 + rng.randrange(250),
            humidity_centi=4500 + rng.randrange(1500),
            pressure_pa=100000 + rng.randrange(500),
            gas=150 + rng.randrange(30),
            device_id=device_id,
        )
        for i in range(n)
    ]
