from __future__ import annotations

import math
import numpy as np

from utils import FSKParams, InvalidParameter, SimulationState

# Relative slack when counting elapsed periods; accumulated ticks such as
# 30 * (1/60) land a few ulps short of a boundary
BOUNDARY_EPS = 1e-9


def symbol_period(params: FSKParams) -> float:
    baud = float(params.baud_rate)
    if not math.isfinite(baud) or baud <= 0:
        raise InvalidParameter(f"Baud rate must be > 0 (got {params.baud_rate!r}).")
    return 1.0 / baud


def draw_symbols(rng: np.random.Generator, m_order: int, n: int) -> np.ndarray:
    return rng.integers(0, int(m_order), size=n)


def elapsed_periods(elapsed: float, period: float) -> tuple[int, float]:
    """Whole periods in `elapsed` and the residue, snapping near-boundaries up."""
    n = int(math.floor(elapsed / period + BOUNDARY_EPS))
    residue = max(elapsed - n * period, 0.0)
    return n, residue


def advance(state: SimulationState, params: FSKParams, dt: float, rng: np.random.Generator) -> int:
    """
    Move the symbol clock forward by `dt` seconds and return the current symbol.

    Every whole symbol period that elapsed gets its own draw, so a slow tick
    spanning several periods still emits all of them. The residue is kept
    with a modulo reduction so boundaries never drift.

    If M shrank below the current symbol, the symbol is redrawn from the new
    alphabet right away instead of waiting for the next boundary.
    """
    period = symbol_period(params)
    m = int(params.m_order)
    n, residue = elapsed_periods(state.time_since_symbol + dt, period)

    if n > 0:
        drawn = draw_symbols(rng, m, n)
        state.symbol = int(drawn[-1])
        state.symbols_emitted += n
    elif state.symbol >= m:
        state.symbol = int(draw_symbols(rng, m, 1)[0])

    state.time_since_symbol = residue
    return state.symbol
