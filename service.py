"""FastAPI command layer for the chase engine.

This module exposes the engine operations over HTTP:
- Window drag / geometry / position commands
- Target spawning and explicit drag begin/end
- One-shot eaten/timeout flags
- WebSocket endpoint streaming ChaseEvent JSON messages as flags fire
"""

import asyncio
from typing import Optional
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query
from fastapi.responses import JSONResponse

from .engine import ChaseEngine
from .schemas import Position, Size, WindowGeometry, DEFAULT_MONITOR
from .windowing import HeadlessBackend, WindowError


def headless_engine() -> ChaseEngine:
    """Engine over an in-memory backend with a 200x200 pursuer at the origin."""
    backend = HeadlessBackend(monitor=DEFAULT_MONITOR, verbose=True)
    engine = ChaseEngine(backend)
    backend.add_surface(engine.config.pursuer_label, Position(x=0, y=0), Size(width=200, height=200))
    return engine


def create_app(engine: Optional[ChaseEngine] = None) -> FastAPI:
    """Build the service around ``engine`` (default: ``headless_engine()``)."""
    if engine is None:
        engine = headless_engine()

    app = FastAPI(
        title="Speaki Chase Service",
        description="Chase-and-capture engine for a desktop pet and its decoy",
        version="1.0.0"
    )
    app.state.engine = engine

    @app.exception_handler(WindowError)
    async def window_error_handler(request, exc: WindowError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/healthz")
    async def health_check():
        """Health check endpoint."""
        return JSONResponse(
            status_code=200,
            content={"status": "healthy", "service": "speaki-chase"}
        )

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "service": "Speaki Chase",
            "version": "1.0.0",
            "endpoints": {
                "websocket": "/ws/events",
                "health": "/healthz"
            },
            "description": "Spawns a decoy and animates the pursuer chasing it"
        }

    @app.post("/windows/{label}/drag")
    def start_drag(label: str):
        engine.start_drag(label)
        return {"ok": True}

    @app.get("/windows/{label}/geometry", response_model=WindowGeometry)
    def get_window_geometry(label: str):
        return engine.get_window_geometry(label)

    @app.put("/windows/{label}/position")
    def set_window_position(label: str, position: Position):
        engine.set_window_position(label, position.x, position.y)
        return {"ok": True}

    @app.post("/spawn")
    def spawn_target(
        pursuer_label: str = Query("main", description="Label of the pursuer surface")
    ):
        return {"captured": engine.spawn_target(pursuer_label)}

    @app.post("/pumpkin-drag/start")
    def start_pumpkin_drag(
        pursuer_label: str = Query("main", description="Label of the pursuer surface")
    ):
        engine.start_pumpkin_drag(pursuer_label)
        return {"ok": True}

    @app.post("/pumpkin-drag/stop")
    def stop_pumpkin_drag():
        engine.stop_pumpkin_drag()
        return {"ok": True}

    @app.post("/flags/eaten")
    def take_eaten_flag():
        return {"value": engine.take_eaten_flag()}

    @app.post("/flags/timeout")
    def take_timeout_flag():
        return {"value": engine.take_timeout_flag()}

    @app.post("/exit")
    def exit_app():
        engine.exit_app()
        return {"ok": True}

    @app.websocket("/ws/events")
    async def websocket_events(
        websocket: WebSocket,
        poll_ms: int = Query(50, gt=0, description="Flag polling interval in milliseconds")
    ):
        """WebSocket endpoint streaming chase outcomes.

        Polls the eaten/timeout flags and sends one ChaseEvent JSON message per
        flag taken. Flags are one-shot, so only one poller should be connected.
        """
        await websocket.accept()
        print("[service] Event stream opened")
        try:
            while True:
                for event in engine.poll_events():
                    await websocket.send_text(event.model_dump_json())
                # Doubles as the poll interval and disconnect detection
                try:
                    message = await asyncio.wait_for(websocket.receive(), timeout=poll_ms / 1000.0)
                except asyncio.TimeoutError:
                    continue
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            print("[service] Client disconnected")
        finally:
            print("[service] WebSocket connection closed")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    print("Starting Speaki Chase service...")
    print("WebSocket endpoint: ws://localhost:8088/ws/events")
    print("Health check: http://localhost:8088/healthz")
    print("API docs: http://localhost:8088/docs")

    uvicorn.run(
        "speaki_chase.service:app",
        host="0.0.0.0",
        port=8088,
        reload=False,
        log_level="info"
    )
