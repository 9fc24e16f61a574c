"""Meta endpoints - scenarios and solvers for the active execution context."""

from fastapi import APIRouter, Request

from solver.scenarios import list_scenarios

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/scenarios")
async def get_scenarios():
    return {"scenarios": [s.to_dict() for s in list_scenarios()]}


@router.get("/solvers")
async def get_solvers(request: Request):
    optimizer = request.app.state.optimizer
    return {
        "mode": optimizer.mode,
        "solvers": optimizer.available_solvers(),
        "default": optimizer.session.capabilities.default,
    }
