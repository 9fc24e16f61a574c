"""Solve endpoint - roster CSV in, balanced teams out.

Input problems answer 400, an unreachable engine 503. Anything that goes
wrong inside the solve itself still answers 200 with an ERROR or UNKNOWN
status so the page can always render something.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from solver.errors import InitializationError, InputError, SessionStateError, UnsupportedSolverError
from solver.optimizer import SolveRequest
from solver.scenarios import DEFAULT_SCENARIO
from utils.config import SOLVER_TIME_LIMIT_MS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["solve"])


class SolveBody(BaseModel):
    csvData: Optional[str] = None
    solver: Optional[str] = None
    scenario: Optional[str] = None
    timeLimit: Optional[int] = Field(default=None, gt=0)
    substitute: bool = False


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/solve")
async def solve(body: SolveBody, request: Request):
    if not body.csvData:
        return _error(400, "CSV data is required")

    solve_request = SolveRequest(
        csv_text=body.csvData,
        solver_id=body.solver,
        scenario_id=body.scenario or DEFAULT_SCENARIO,
        time_limit_millis=body.timeLimit or SOLVER_TIME_LIMIT_MS,
        substitute_solver=body.substitute,
    )

    optimizer = request.app.state.optimizer
    try:
        async with request.app.state.solve_lock:
            response = await optimizer.solve_request(solve_request)
    except UnsupportedSolverError as e:
        return _error(400, str(e), available=e.available)
    except InputError as e:
        return _error(400, str(e))
    except InitializationError as e:
        logger.error(f"Solver engine unavailable: {e}")
        return _error(503, str(e))
    except SessionStateError as e:
        return _error(409, str(e))

    return response.to_dict()
