from __future__ import annotations

import threading

import numpy as np
from fastapi.testclient import TestClient

from rppg_vitals import service
from rppg_vitals.service import make_app


def _samples(n: int = 300, fs: float = 30.0, f: float = 1.2) -> list[list[float]]:
    t = np.arange(n) / fs
    s = np.sin(2 * np.pi * f * t)
    rng = np.random.RandomState(0)
    return [
        [150.0 + 0.4 * v + 0.05 * rng.randn(), 110.0 + 0.9 * v, 90.0 + 0.2 * v]
        for v in s
    ]


def test_ingest_and_metrics() -> None:
    client = TestClient(make_app())
    assert client.get("/metrics").json() == {"status": "init"}

    r = client.post("/ingest", json={"t0": 0.0, "dt": 1000.0 / 30, "mean_rgb": _samples(30)})
    assert r.json() == {"status": "ok", "count": 30}
    assert client.get("/metrics").json()["status"] == "insufficient"

    client.post("/reset")
    client.post("/ingest", json={"t0": 0.0, "dt": 1000.0 / 30, "mean_rgb": _samples()})
    m = client.get("/metrics").json()
    assert m["status"] == "ok"
    assert 69.0 <= m["hr"] <= 75.0
    assert m["quality"]["usable"] is True
    assert len(m["harmonics"]["harmonics"]) == 11

    s = client.get("/summary").json()
    assert s["status"] == "ok"
    assert 69.0 <= s["avg_hr"] <= 75.0


def test_control_validation() -> None:
    client = TestClient(make_app())
    r = client.post("/control", json={"strict": True})
    assert r.status_code == 200
    assert r.json()["params"]["strict"] is True
    assert client.post("/control", json={"win_sec": 1.0}).status_code == 422


def test_ingest_rejects_bad_samples() -> None:
    client = TestClient(make_app())
    bad_shape = {"t0": 0.0, "dt": 33.3, "mean_rgb": [[1.0, 2.0]]}
    assert client.post("/ingest", json=bad_shape).status_code == 422
    negative = {"t0": 0.0, "dt": 33.3, "mean_rgb": [[1.0, -2.0, 3.0]]}
    assert client.post("/ingest", json=negative).status_code == 422
    assert client.post("/ingest", json={"t0": 0.0, "dt": 33.3, "mean_rgb": []}).json() == {
        "status": "empty"
    }


def test_reset_clears_session() -> None:
    client = TestClient(make_app())
    client.post("/ingest", json={"t0": 0.0, "dt": 1000.0 / 30, "mean_rgb": _samples()})
    client.get("/metrics")
    assert client.post("/reset").json() == {"status": "ok"}
    assert client.get("/summary").json() == {"status": "empty"}
    assert client.get("/metrics").json() == {"status": "init"}


def test_analysis_runs_off_the_event_loop(monkeypatch) -> None:
    worker_threads: list[int] = []
    analyze = service.analyze_window

    def recording_analyze(*args):
        worker_threads.append(threading.get_ident())
        return analyze(*args)

    monkeypatch.setattr(service, "analyze_window", recording_analyze)
    app = make_app()

    @app.get("/loop-thread")
    async def loop_thread() -> dict:
        return {"id": threading.get_ident()}

    with TestClient(app) as client:
        client.post("/ingest", json={"t0": 0.0, "dt": 1000.0 / 30, "mean_rgb": _samples()})
        assert client.get("/metrics").json()["status"] == "ok"
        loop_id = client.get("/loop-thread").json()["id"]
    assert worker_threads and all(t != loop_id for t in worker_threads)
