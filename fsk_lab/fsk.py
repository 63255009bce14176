from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple, Union
import numpy as np

from utils import TWO_PI, FSKParams, gaussian_noise, validate_params

# ----------------------------
# Frequency plans
# ----------------------------

@dataclass(frozen=True)
class BinaryPlan:
    mark: float     # symbol 1
    space: float    # symbol 0

    def frequency(self, symbol: int) -> float:
        return self.mark if symbol == 1 else self.space


@dataclass(frozen=True)
class MAryPlan:
    base: float
    spacing: float

    def frequency(self, symbol: int) -> float:
        return self.base + symbol * self.spacing


FrequencyPlan = Union[BinaryPlan, MAryPlan]


@lru_cache(maxsize=64)
def frequency_plan(params: FSKParams) -> FrequencyPlan:
    """
    Validate `params` and pick the tone plan for its order.

    M=2 uses mark/space, M>2 uses base + k*spacing. Invalid params raise
    InvalidParameter (failures are not cached).
    """
    validate_params(params)
    if int(params.m_order) == 2:
        return BinaryPlan(mark=float(params.mark_freq), space=float(params.space_freq))
    return MAryPlan(base=float(params.base_freq), spacing=float(params.freq_spacing))


def target_frequency(params: FSKParams, symbol: int) -> float:
    return frequency_plan(params).frequency(int(symbol))


def frequency_map(params: FSKParams) -> List[float]:
    plan = frequency_plan(params)
    return [plan.frequency(k) for k in range(int(params.m_order))]


# ----------------------------
# Phase evolution
# ----------------------------

def continuous_phase(prev_phase: float, freq: float, dt: float) -> float:
    # Integrate instantaneous frequency; only the slope changes at a boundary
    return float(np.mod(prev_phase + TWO_PI * freq * dt, TWO_PI))


def absolute_phase(freq: float, time: float) -> float:
    # Depends only on absolute time: jumps whenever the frequency changes
    return float(np.mod(TWO_PI * freq * time, TWO_PI))


# ----------------------------
# Synthesizer
# ----------------------------

def synthesize(
    time: float,
    symbol: int,
    params: FSKParams,
    prev_phase: float,
    dt: float,
    rng: np.random.Generator,
) -> Tuple[float, float]:
    """
    Compute one FSK sample.

    Returns (value, new_phase). new_phase is the phase to carry into the
    next tick; it is always 0.0 when continuous phase is disabled.
    """
    f = frequency_plan(params).frequency(int(symbol))

    if params.continuous_phase:
        phase = continuous_phase(prev_phase, f, dt)
        new_phase = phase
    else:
        phase = absolute_phase(f, time)
        new_phase = 0.0

    clean = float(params.amplitude) * math.sin(phase)
    noise = gaussian_noise(rng) * float(params.noise_level)
    return clean + noise, new_phase
