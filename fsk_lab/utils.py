from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import NamedTuple, Optional
import numpy as np

# ----------------------------
# Constants / defaults
# ----------------------------

WINDOW_DURATION = 5.0      # seconds of history kept in the window
MAX_DT = 0.1               # upper bound for a single tick (s)
SAMPLE_RATE = 60           # nominal driver refresh (ticks/s)
M_ORDERS = (2, 4, 8)       # orders offered by the driver

TWO_PI = 2.0 * np.pi


class InvalidParameter(ValueError):
    """Raised when modulation or tick parameters cannot drive the simulation."""


@dataclass(frozen=True)
class FSKParams:
    m_order: int = 2               # alphabet size M
    mark_freq: float = 5.0         # M=2, symbol 1 (Hz)
    space_freq: float = 2.0        # M=2, symbol 0 (Hz)
    base_freq: float = 2.0         # M>2, symbol 0 (Hz)
    freq_spacing: float = 2.0      # M>2, step between tones (Hz)
    baud_rate: float = 1.0         # symbols per second
    amplitude: float = 1.0
    noise_level: float = 0.0       # std-dev of the additive noise
    continuous_phase: bool = True  # CPFSK


DEFAULT_PARAMS = FSKParams()


@dataclass
class SimulationState:
    time: float = 0.0                # elapsed simulated time (s)
    time_since_symbol: float = 0.0   # residue since last symbol boundary (s)
    symbol: int = 0
    phase: float = 0.0               # carried phase (rad), in [0, 2π)
    symbols_emitted: int = 0


class Sample(NamedTuple):
    time: float
    value: float


@dataclass
class SimConfig:
    retention: float = WINDOW_DURATION
    max_dt: float = MAX_DT
    seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "SimConfig":
        retention = os.environ.get("FSK_LAB_RETENTION", "").strip()
        max_dt = os.environ.get("FSK_LAB_MAX_DT", "").strip()
        seed = os.environ.get("FSK_LAB_SEED", "").strip()
        try:
            return cls(
                retention=float(retention) if retention else WINDOW_DURATION,
                max_dt=float(max_dt) if max_dt else MAX_DT,
                seed=int(seed) if seed else None,
            )
        except ValueError as exc:
            raise ValueError(f"Malformed FSK_LAB_* environment setting: {exc}") from exc


# ----------------------------
# Validation
# ----------------------------

def _check_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite (got {value!r}).")
    if value < 0:
        raise InvalidParameter(f"{name} must be >= 0 (got {value:.6g}).")


def validate_params(params: FSKParams) -> None:
    m = params.m_order
    try:
        integral = not isinstance(m, bool) and int(m) == m
    except (TypeError, ValueError, OverflowError):
        integral = False
    if not integral:
        raise InvalidParameter(f"M must be an integer (got {m!r}).")
    if m < 2:
        raise InvalidParameter(f"M must be >= 2 (got {m}).")
    if not math.isfinite(params.baud_rate) or params.baud_rate <= 0:
        raise InvalidParameter(f"Baud rate must be > 0 (got {params.baud_rate!r}).")
    for name in ("mark_freq", "space_freq", "base_freq", "freq_spacing"):
        _check_non_negative(name, float(getattr(params, name)))
    _check_non_negative("amplitude", float(params.amplitude))
    _check_non_negative("noise_level", float(params.noise_level))


def validate_dt(dt: float) -> float:
    dt = float(dt)
    if not math.isfinite(dt) or dt < 0:
        raise InvalidParameter(f"dt must be a finite, non-negative number of seconds (got {dt!r}).")
    return dt


# ----------------------------
# Randomness
# ----------------------------

def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def _open_uniform(rng: np.random.Generator) -> float:
    # Generator.random() is [0, 1); reject 0 so log() stays finite
    u = 0.0
    while u == 0.0:
        u = float(rng.random())
    return u


def gaussian_noise(rng: np.random.Generator) -> float:
    """Standard normal variate via Box-Muller over two draws in (0, 1)."""
    u = _open_uniform(rng)
    v = _open_uniform(rng)
    return math.sqrt(-2.0 * math.log(u)) * math.cos(TWO_PI * v)


# ----------------------------
# Advisory text
# ----------------------------

def describe_params(params: FSKParams) -> str:
    if params.m_order == 2:
        mode = (
            "- Mode: Binary FSK (2-FSK)\n"
            f"- Mark Frequency (1): {params.mark_freq:g} Hz\n"
            f"- Space Frequency (0): {params.space_freq:g} Hz"
        )
    else:
        mode = (
            f"- Mode: {params.m_order}-FSK\n"
            f"- Base Frequency: {params.base_freq:g} Hz\n"
            f"- Frequency Spacing: {params.freq_spacing:g} Hz"
        )
    cpfsk = "Enabled (CPFSK)" if params.continuous_phase else "Disabled"
    return "\n".join([
        mode,
        f"- Symbol Rate: {params.baud_rate:g} baud",
        f"- Amplitude: {params.amplitude:g}",
        f"- Noise Level: {params.noise_level:g}",
        f"- Continuous Phase: {cpfsk}",
    ])
