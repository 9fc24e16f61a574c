"""FastAPI application for the Team Optimizer.

Single process serving the solve API and, when present, the static browser
front-end. One TeamBalanceOptimizer (and so one engine session) is shared by
all requests; solves are serialized through a lock because the engine handle
is not shared between concurrent invocations.

Run with:
    uvicorn dashboard.backend.main:app --port 3000
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

# Ensure project root is importable
_project_root = str(Path(__file__).parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from solver.errors import InitializationError
from solver.optimizer import TeamBalanceOptimizer

logger = logging.getLogger(__name__)


def create_app(optimizer: Optional[TeamBalanceOptimizer] = None) -> FastAPI:
    """Build the application.

    Args:
        optimizer: Injected optimizer; built from utils.config when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, 'optimizer', None) is None:
            app.state.optimizer = TeamBalanceOptimizer.from_config()
        app.state.solve_lock = asyncio.Lock()

        # Start the engine early; a failure is retried on the first solve
        try:
            await app.state.optimizer.start()
            logger.info(f"Solver engine started ({app.state.optimizer.mode} mode)")
        except InitializationError as e:
            logger.warning(f"Solver engine not available yet: {e}")

        yield

        await app.state.optimizer.close()
        logger.info("Solver engine stopped")

    app = FastAPI(
        title="Camogie Team Optimizer",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.optimizer = optimizer

    # --- Routers ---
    from dashboard.backend.routers.meta import router as meta_router
    from dashboard.backend.routers.solve import router as solve_router

    app.include_router(meta_router)
    app.include_router(solve_router)

    @app.get("/api/health")
    async def health():
        """Readiness check."""
        current = app.state.optimizer
        return {
            "ready": current is not None and current.session.state.value in ("ready", "solving"),
            "mode": current.mode if current is not None else None,
            "state": current.session.state.value if current is not None else None,
        }

    # --- Static front-end (optional) ---
    _public_dir = Path(_project_root) / "public"
    if _public_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(_public_dir), html=True), name="public")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from utils.config import LOG_LEVEL, SERVER_HOST, SERVER_PORT

    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format='%(levelname)s | %(message)s')
    print(f"""
============================================
  Camogie Team Optimization Server
============================================
  URL: http://{SERVER_HOST}:{SERVER_PORT}

  Endpoints:
    GET  /api/scenarios  - List available scenarios
    GET  /api/solvers    - List available solvers
    POST /api/solve      - Solve team optimization
============================================
""")
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
