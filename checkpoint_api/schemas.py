"""Esquemas Pydantic de la API de checkpoints.

Los nombres wire del firmware (deviceId, ts, t_c_x100, rh_x100, p_pa, gas)
son los alias; populate_by_name permite también snake_case.
"""

from __future__ import annotations

from typing import List, Optional

import base58
from pydantic import BaseModel, Field, StrictInt, validator

from .core.domain import CheckpointRefs, Reading
from .core.ledger import ThresholdConfig

U32_MAX = 2**32 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1


class ReadingIn(BaseModel):
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    timestamp: StrictInt = Field(..., alias="ts", description="Epoch en segundos")
    temperature_centi: StrictInt = Field(..., alias="t_c_x100")
    humidity_centi: StrictInt = Field(..., alias="rh_x100")
    pressure_pa: StrictInt = Field(..., alias="p_pa")
    gas: StrictInt

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "deviceId": "m5-core2-01",
                "ts": 1735689600,
                "t_c_x100": 2534,
                "rh_x100": 5120,
                "p_pa": 100325,
                "gas": 162,
            }
        }

    def to_domain(self) -> Reading:
        return Reading(
            timestamp=self.timestamp,
            temperature_centi=self.temperature_centi,
            humidity_centi=self.humidity_centi,
            pressure_pa=self.pressure_pa,
            gas=self.gas,
            device_id=self.device_id,
        )


class _RefsIn(BaseModel):
    device_ref: str = Field(..., alias="deviceRef")
    checkpoint_ref: str = Field(..., alias="checkpointRef")

    class Config:
        populate_by_name = True

    def refs(self) -> CheckpointRefs:
        return CheckpointRefs(device_ref=self.device_ref, checkpoint_ref=self.checkpoint_ref)


class FinalizeBulkIn(_RefsIn):
    chunk_size: Optional[StrictInt] = Field(default=None, alias="chunkSize")
    readings: List[ReadingIn] = Field(default_factory=list)

    def to_domain(self) -> List[Reading]:
        return [r.to_domain() for r in self.readings]


class FinalizeWindowIn(_RefsIn):
    window_index: StrictInt = Field(..., ge=0, alias="windowIndex")
    readings: List[ReadingIn] = Field(default_factory=list)

    def to_domain(self) -> List[Reading]:
        return [r.to_domain() for r in self.readings]


class CommitIn(_RefsIn):
    merkle_root_hex: str = Field(..., alias="merkleRootHex")
    cid: Optional[str] = None

    @validator("merkle_root_hex")
    def validate_root_hex(cls, v):
        v = v.strip().lower()
        if v.startswith("0x"):
            v = v[2:]
        if len(v) != 64:
            raise ValueError("merkleRootHex must be 32-byte hex (64 chars)")
        try:
            bytes.fromhex(v)
        except ValueError:
            raise ValueError("merkleRootHex is not valid hex")
        return v

    @property
    def root(self) -> bytes:
        return bytes.fromhex(self.merkle_root_hex)


class VerifyIn(BaseModel):
    signature: str
    readings: List[ReadingIn] = Field(..., min_length=1)

    @validator("signature")
    def validate_signature(cls, v):
        v = v.strip()
        try:
            raw = base58.b58decode(v)
        except ValueError:
            raise ValueError("signature is not valid base58")
        if len(raw) != 64:
            raise ValueError("signature must decode to 64 bytes")
        return v

    def to_domain(self) -> List[Reading]:
        return [r.to_domain() for r in self.readings]


class DeviceAccountsIn(BaseModel):
    authority: Optional[str] = None


class InitializeDeviceIn(BaseModel):
    max_co2_ppm: StrictInt = Field(default=1000, ge=0, le=U32_MAX, alias="maxCo2Ppm")
    t_min_c_x100: StrictInt = Field(default=0, ge=I32_MIN, le=I32_MAX, alias="tMinCx100")
    t_max_c_x100: StrictInt = Field(default=3700, ge=I32_MIN, le=I32_MAX, alias="tMaxCx100")
    rh_max_x100: StrictInt = Field(default=8500, ge=0, le=U32_MAX, alias="rhMaxX100")

    class Config:
        populate_by_name = True

    def to_domain(self) -> ThresholdConfig:
        return ThresholdConfig(
            max_co2_ppm=self.max_co2_ppm,
            t_min_c_x100=self.t_min_c_x100,
            t_max_c_x100=self.t_max_c_x100,
            rh_max_x100=self.rh_max_x100,
        )
