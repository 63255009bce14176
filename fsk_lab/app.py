from __future__ import annotations

import logging
import time

import streamlit as st
import plotly.graph_objects as go

from utils import DEFAULT_PARAMS, M_ORDERS, SAMPLE_RATE, FSKParams, SimConfig, describe_params
from fsk import frequency_map
from simulator import FSKSimulator, clamp_dt

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(layout="wide")


def plot_signal(t, x, title, y_range, span, step=False, color=None):
    fig = go.Figure()
    line = {"color": color} if color else {}
    if step:
        fig.add_trace(go.Scatter(x=t, y=x, mode="lines", line_shape="hv", line=line, name=title))
    else:
        fig.add_trace(go.Scatter(x=t, y=x, mode="lines", line=line, name=title))
    fig.update_layout(title=title, xaxis_title="Time (s)", yaxis_title="Amplitude", height=260)
    fig.update_yaxes(range=list(y_range))
    if len(t):
        fig.update_xaxes(range=[max(0.0, float(t[-1]) - span), float(t[-1])])
    return fig


st.title("FSK Live Lab — Real-time Digital Modulation Simulator")

if "sim" not in st.session_state:
    st.session_state["sim"] = FSKSimulator(DEFAULT_PARAMS, SimConfig.from_env())
    st.session_state["running"] = True

sim: FSKSimulator = st.session_state["sim"]
p = sim.params

with st.sidebar:
    st.header("Modulation parameters")

    m_order = st.radio("Modulation order (M)", M_ORDERS, index=M_ORDERS.index(p.m_order),
                       format_func=lambda m: f"{m}-FSK", horizontal=True)

    mark_freq, space_freq = p.mark_freq, p.space_freq
    base_freq, freq_spacing = p.base_freq, p.freq_spacing
    if m_order == 2:
        mark_freq = st.slider("Mark frequency, logic 1 (Hz)", 1.0, 20.0, float(p.mark_freq), step=0.5)
        space_freq = st.slider("Space frequency, logic 0 (Hz)", 0.5, 20.0, float(p.space_freq), step=0.5)
    else:
        base_freq = st.slider("Base frequency, symbol 0 (Hz)", 1.0, 10.0, float(p.base_freq), step=0.5)
        freq_spacing = st.slider("Frequency spacing Δf (Hz)", 0.5, 5.0, float(p.freq_spacing), step=0.1)

    baud_rate = st.slider("Baud rate (symbols/s)", 0.5, 10.0, float(p.baud_rate), step=0.5)
    amplitude = st.slider("Amplitude", 0.1, 2.0, float(p.amplitude), step=0.1)
    noise_level = st.slider("Noise level", 0.0, 1.0, float(p.noise_level), step=0.05)
    continuous_phase = st.checkbox("Continuous phase (CPFSK)", value=p.continuous_phase)

    sim.set_params(FSKParams(
        m_order=int(m_order),
        mark_freq=float(mark_freq),
        space_freq=float(space_freq),
        base_freq=float(base_freq),
        freq_spacing=float(freq_spacing),
        baud_rate=float(baud_rate),
        amplitude=float(amplitude),
        noise_level=float(noise_level),
        continuous_phase=bool(continuous_phase),
    ))

    st.divider()
    st.caption("Frequency map")
    st.json({str(k): round(f, 3) for k, f in enumerate(frequency_map(sim.params))})

    st.divider()
    c1, c2 = st.columns(2)
    if c1.button("Pause" if st.session_state["running"] else "Resume"):
        st.session_state["running"] = not st.session_state["running"]
        st.rerun()
    if c2.button("Reset"):
        sim.reset()

left, right = st.columns([2, 1])
with left:
    signal_slot = st.empty()
    symbol_slot = st.empty()
with right:
    st.subheader("Current settings")
    st.markdown(describe_params(sim.params))
    st.caption(
        "Enable Continuous Phase (CPFSK) to keep the carrier phase across frequency "
        "transitions; with it disabled the phase jumps at every symbol boundary."
    )


def draw():
    t, x, sym = sim.window.to_arrays()
    m = sim.params.m_order
    span = sim.config.retention
    signal_slot.plotly_chart(plot_signal(t, x, "Modulated signal (Tx output)", (-2, 2), span, color="#3b82f6"),
                             width="stretch")
    label = "Binary input" if m == 2 else f"Symbol stream ({m}-ary)"
    top = 1.2 if m == 2 else float(m)
    symbol_slot.plotly_chart(plot_signal(t, sym, label, (0, top), span, step=True, color="#10b981"),
                             width="stretch")


last = time.perf_counter()
while st.session_state["running"]:
    now = time.perf_counter()
    dt = clamp_dt(now - last, sim.config.max_dt)
    last = now
    sim.tick(dt)
    draw()
    time.sleep(1.0 / SAMPLE_RATE)

draw()
