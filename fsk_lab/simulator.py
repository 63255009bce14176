from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Optional
import numpy as np

from utils import (
    DEFAULT_PARAMS,
    MAX_DT,
    FSKParams,
    InvalidParameter,
    SimConfig,
    SimulationState,
    make_rng,
    validate_dt,
)
from fsk import frequency_plan, synthesize
from scheduler import advance, symbol_period
from window import WindowBuffer

logger = logging.getLogger(__name__)


def clamp_dt(raw_dt: float, max_dt: float = MAX_DT) -> float:
    """Bound a wall-clock delta to [0, max_dt] before it reaches the simulator."""
    raw_dt = float(raw_dt)
    if math.isnan(raw_dt):
        return 0.0
    return min(max(raw_dt, 0.0), float(max_dt))


class FSKSimulator:
    """
    One simulation session: symbol clock, carrier phase and sample window.

    Drive it with `tick(dt)` once per refresh. Each session owns its own
    state, window and random generator; sessions never share anything.
    """

    def __init__(
        self,
        params: FSKParams = DEFAULT_PARAMS,
        config: Optional[SimConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config if config is not None else SimConfig()
        self._params = params
        self.rng = rng if rng is not None else make_rng(self.config.seed)
        self.state = SimulationState()
        self.window = WindowBuffer(self.config.retention)
        logger.info(
            "FSK session started (retention=%.3gs, max_dt=%.3gs, seed=%s)",
            self.config.retention, self.config.max_dt, self.config.seed,
        )

    @property
    def params(self) -> FSKParams:
        # FSKParams is frozen, so readers get a snapshot they cannot mutate
        return self._params

    def set_params(self, params: FSKParams) -> None:
        if params != self._params:
            logger.debug("Modulation parameters replaced: %s", params)
        self._params = params

    def _check(self, dt: float, params: FSKParams) -> float:
        try:
            dt = validate_dt(dt)
            frequency_plan(params)
            symbol_period(params)
        except InvalidParameter as exc:
            logger.warning("Tick rejected: %s", exc)
            raise
        return dt

    def tick(self, dt: float, params: Optional[FSKParams] = None) -> WindowBuffer:
        """
        Advance the session by `dt` seconds and return the sample window.

        Invalid `dt` or params raise InvalidParameter before anything is
        touched, so a rejected tick leaves state, params and window as they were.
        """
        p = self._params if params is None else params
        dt = self._check(dt, p)
        if params is not None:
            self.set_params(params)

        now = self.window.now
        if now is not None and self.state.time + dt <= now:
            return self.window

        nxt = replace(self.state)
        nxt.time = self.state.time + dt
        advance(nxt, p, dt, self.rng)
        value, nxt.phase = synthesize(nxt.time, nxt.symbol, p, self.state.phase, dt, self.rng)

        self.window.append(nxt.time, value, nxt.symbol)
        self.window.prune()
        self.state = nxt
        return self.window

    def run(self, duration: float, dt: float) -> WindowBuffer:
        """Tick repeatedly with a fixed step until `duration` seconds have been simulated."""
        dt = validate_dt(dt)
        if dt == 0:
            raise InvalidParameter("run() needs a positive step.")
        steps = int(math.ceil(float(duration) / dt - 1e-9))
        for _ in range(max(steps, 0)):
            self.tick(dt)
        return self.window

    def reset(self) -> None:
        self.state = SimulationState()
        self.window.clear()
        if self.config.seed is not None:
            self.rng = make_rng(self.config.seed)
        logger.info("FSK session reset")
