"""Derivación de cuentas de programa (PDAs) por dispositivo.

Seeds:
- device:     ["device", authority]
- feed:       ["feed", device]
- score:      ["score", device]
- checkpoint: ["cp", device]
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Dict

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .discriminator import discriminator

SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
INITIALIZE_DEVICE = "initialize_device"


@dataclass(frozen=True)
class ThresholdConfig:
    """Umbrales del dispositivo (temperatura/humedad en centésimas)."""
    max_co2_ppm: int = 1000
    t_min_c_x100: int = 0
    t_max_c_x100: int = 3700
    rh_max_x100: int = 8500

    def to_bytes(self) -> bytes:
        # u32, i32, i32, u32 little-endian
        try:
            return struct.pack("<IiiI", self.max_co2_ppm, self.t_min_c_x100, self.t_max_c_x100, self.rh_max_x100)
        except struct.error as e:
            raise ValueError(f"threshold out of range: {e}") from e


@dataclass(frozen=True)
class DeviceAccounts:
    authority: Pubkey
    device: Pubkey
    feed: Pubkey
    score: Pubkey
    checkpoint: Pubkey
    bumps: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authority": str(self.authority),
            "devicePda": str(self.device),
            "feedPda": str(self.feed),
            "scorePda": str(self.score),
            "checkpointPda": str(self.checkpoint),
            "bumps": dict(self.bumps),
        }


def derive_device_accounts(authority: Pubkey, program_id: Pubkey) -> DeviceAccounts:
    device, device_bump = Pubkey.find_program_address([b"device", bytes(authority)], program_id)
    feed, feed_bump = Pubkey.find_program_address([b"feed", bytes(device)], program_id)
    score, score_bump = Pubkey.find_program_address([b"score", bytes(device)], program_id)
    checkpoint, cp_bump = Pubkey.find_program_address([b"cp", bytes(device)], program_id)
    return DeviceAccounts(
        authority=authority,
        device=device,
        feed=feed,
        score=score,
        checkpoint=checkpoint,
        bumps={"deviceBump": device_bump, "feedBump": feed_bump, "scoreBump": score_bump, "cpBump": cp_bump},
    )


def build_initialize_device_instruction(
    program_id: Pubkey,
    authority: Pubkey,
    accounts: DeviceAccounts,
    cfg: ThresholdConfig,
) -> Instruction:
    metas = [
        AccountMeta(authority, is_signer=True, is_writable=True),
        AccountMeta(accounts.device, is_signer=False, is_writable=True),
        AccountMeta(accounts.feed, is_signer=False, is_writable=True),
        AccountMeta(accounts.score, is_signer=False, is_writable=True),
        AccountMeta(accounts.checkpoint, is_signer=False, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(program_id, discriminator(INITIALIZE_DEVICE) + cfg.to_bytes(), metas)
