"""FastAPI service exposing vital-sign metrics for a Web UI.

The browser samples the face region itself and POSTs averaged RGB values to
`/ingest`; the service keeps a bounded ring buffer and runs the same
`analyze_window` pipeline on a copy of the latest window each tick.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Deque, Optional

import numpy as np
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .pipeline import (
    MIN_HR_SAMPLES,
    PipelineConfig,
    SessionAccumulator,
    analyze_window,
    estimate_fps,
)

logger = logging.getLogger(__name__)

BUFFER_LEN = 60 * 60  # 60 s at 60 fps
TICK_SEC = 0.5


@dataclass
class State:
    params: PipelineConfig
    R: Deque[float]
    G: Deque[float]
    B: Deque[float]
    T: Deque[float]  # ms
    session: SessionAccumulator = field(default_factory=SessionAccumulator)
    last_t_computed: Optional[float] = None
    metrics: dict = field(default_factory=lambda: {"status": "init"})


class ControlModel(BaseModel):
    strict: Optional[bool] = None
    win_sec: Optional[float] = Field(None, ge=5.0, le=60.0)
    motion_window: Optional[int] = Field(None, ge=5, le=300)


class IngestModel(BaseModel):
    t0: float  # ms
    dt: float = Field(..., gt=0.0)  # ms
    mean_rgb: list[tuple[float, float, float]]


def _new_state() -> State:
    return State(
        params=PipelineConfig(),
        R=deque(maxlen=BUFFER_LEN),
        G=deque(maxlen=BUFFER_LEN),
        B=deque(maxlen=BUFFER_LEN),
        T=deque(maxlen=BUFFER_LEN),
    )


def make_app() -> FastAPI:
    app = FastAPI(title="rPPG Vitals Service", version="0.1.0")

    state = _new_state()
    loop_task: Optional[asyncio.Task] = None
    lock = asyncio.Lock()
    ws_clients: set[WebSocket] = set()

    @app.on_event("startup")
    async def _startup() -> None:  # pragma: no cover - integration
        nonlocal loop_task
        loop_task = asyncio.create_task(process_loop())

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover - integration
        nonlocal loop_task
        if loop_task:
            loop_task.cancel()
            try:
                await loop_task
            except asyncio.CancelledError:
                pass

    async def process_loop() -> None:  # pragma: no cover - integration
        while True:
            try:
                await asyncio.sleep(TICK_SEC)
                async with lock:
                    await compute_once()
                if ws_clients:
                    msg = json.dumps(state.metrics)
                    dead: list[WebSocket] = []
                    for w in ws_clients:
                        try:
                            await w.send_text(msg)
                        except (WebSocketDisconnect, RuntimeError):
                            dead.append(w)
                    for w in dead:
                        ws_clients.discard(w)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("processing tick failed")
                await asyncio.sleep(TICK_SEC)

    async def compute_once() -> None:
        """Analyze a copy of the latest window; caller holds the lock.

        The analysis runs in a worker thread so the event loop keeps serving
        websocket clients and health checks meanwhile.
        """
        if not state.T:
            return
        t_last = state.T[-1]
        if state.last_t_computed == t_last:
            return
        p = state.params
        fs = estimate_fps(list(state.T)[-min(len(state.T), 300) :])
        L = max(MIN_HR_SAMPLES, int(p.win_sec * fs))
        # Copy-on-read: the window is frozen before analysis
        R = np.array(list(state.R)[-L:], dtype=np.float64)
        G = np.array(list(state.G)[-L:], dtype=np.float64)
        B = np.array(list(state.B)[-L:], dtype=np.float64)
        state.last_t_computed = t_last
        if R.size < MIN_HR_SAMPLES:
            state.metrics = {"status": "insufficient", "count": int(R.size)}
            return
        report = await asyncio.to_thread(analyze_window, R, G, B, fs, p)
        state.session.add(report, t_ms=t_last)
        state.metrics = {"status": "ok", "t": t_last, **report.as_dict()}

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.get("/metrics")
    async def get_metrics() -> dict:
        async with lock:
            await compute_once()
            return dict(state.metrics)

    @app.post("/control")
    async def post_control(cfg: ControlModel) -> dict:
        async with lock:
            data = cfg.model_dump(exclude_none=True)
            for k, v in data.items():
                setattr(state.params, k, v)
            if data:
                logger.info("control updated: %s", data)
                state.last_t_computed = None
            return {"status": "ok", "params": asdict(state.params)}

    @app.post("/ingest")
    async def post_ingest(payload: IngestModel) -> dict:
        if not payload.mean_rgb:
            return {"status": "empty"}
        if any(v < 0 for rgb in payload.mean_rgb for v in rgb):
            raise HTTPException(status_code=422, detail="samples must be non-negative")
        t = payload.t0
        async with lock:
            if state.T and t <= state.T[-1]:
                raise HTTPException(status_code=422, detail="timestamps must increase")
            for r, g, b in payload.mean_rgb:
                state.R.append(float(r))
                state.G.append(float(g))
                state.B.append(float(b))
                state.T.append(float(t))
                t += payload.dt
        return {"status": "ok", "count": len(payload.mean_rgb)}

    @app.post("/reset")
    async def post_reset() -> dict:
        async with lock:
            for buf in (state.R, state.G, state.B, state.T):
                buf.clear()
            state.session.reset()
            state.last_t_computed = None
            state.metrics = {"status": "init"}
        logger.info("session reset")
        return {"status": "ok"}

    @app.get("/summary")
    async def get_summary() -> dict:
        async with lock:
            summary = state.session.summary()
        if summary is None:
            return {"status": "empty"}
        return {"status": "ok", **asdict(summary)}

    @app.websocket("/ws")
    async def ws_metrics(ws: WebSocket) -> None:  # pragma: no cover - integration
        await ws.accept()
        ws_clients.add(ws)
        try:
            while True:
                # keep alive; updates are pushed from loop
                await ws.receive_text()
        except WebSocketDisconnect:
            ws_clients.discard(ws)

    return app


app = make_app()


def main() -> None:  # pragma: no cover - manual run helper
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
