"""Solver Session

Owns one engine handle for its lifetime and exposes a single ``solve`` that
behaves the same whichever engine sits underneath.

State machine::

    UNINITIALIZED -> INITIALIZING -> READY -> (SOLVING -> READY)* -> CLOSED

``init`` failure returns the session to UNINITIALIZED so the caller can retry
with corrected configuration. ``solve`` always returns to READY: engine
failures, timeouts and unrecognizable responses are folded into the returned
SolveResult instead of being raised. The session never retries.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Iterable, Optional

from .capabilities import capabilities_for, check_solver
from .context import ExecutionContext
from .definitions import (
    STATUS_ERROR,
    STATUS_UNKNOWN,
    Capabilities,
    ModelPayload,
    SolveResult,
    SolverConfig,
)
from .engines import Engine
from .errors import EngineFailure, InitializationError, SessionStateError, describe_error
from .normalizer import normalize

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZING = 'initializing'
    READY = 'ready'
    SOLVING = 'solving'
    CLOSED = 'closed'


class SolverSession:
    """Lifecycle wrapper around one MiniZinc engine.

    Args:
        engine: Engine adapter matching ``context``. The session takes ownership.
        context: Execution context, decided once at process start.
        solver_override: Optional native solver list from configuration.
        grace_millis: Extra wall time past ``time_limit_millis`` before the
            engine call is abandoned. The engine enforces the time limit itself
            and normally returns its best solution within it.
    """

    def __init__(
        self,
        engine: Engine,
        context: ExecutionContext,
        solver_override: Optional[Iterable[str]] = None,
        grace_millis: int = 1000
    ):
        self._engine = engine
        self.context = context
        self.capabilities: Capabilities = capabilities_for(context, solver_override)
        self.grace_millis = max(0, int(grace_millis))
        self._state = SessionState.UNINITIALIZED
        self._in_flight = 0
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session {self._state.value} -> {state.value}")
        self._state = state

    async def init(self) -> None:
        """Start the engine. No-op when already READY.

        Raises:
            InitializationError: Engine unreachable; state goes back to UNINITIALIZED.
            SessionStateError: Session already closed.
        """
        async with self._init_lock:
            if self._state is SessionState.CLOSED:
                raise SessionStateError('Session is closed')
            if self._state is not SessionState.UNINITIALIZED:
                return

            self._transition(SessionState.INITIALIZING)
            try:
                await self._engine.start()
            except InitializationError:
                self._transition(SessionState.UNINITIALIZED)
                raise
            except Exception as e:
                self._transition(SessionState.UNINITIALIZED)
                raise InitializationError(describe_error(e)) from e
            self._transition(SessionState.READY)
            logger.info(
                f"Solver session ready ({self.context.value} mode, "
                f"solvers: {', '.join(self.capabilities.sorted_solvers())})"
            )

    def _enter_solve(self) -> None:
        if self._state is SessionState.SOLVING and self.context is ExecutionContext.SANDBOXED:
            raise SessionStateError('A solve is already running; the sandboxed engine cannot queue solves')
        if self._state not in (SessionState.READY, SessionState.SOLVING):
            raise SessionStateError(f'Cannot solve while session is {self._state.value}')
        self._in_flight += 1
        if self._state is SessionState.READY:
            self._transition(SessionState.SOLVING)

    def _leave_solve(self) -> None:
        self._in_flight -= 1
        if self._in_flight == 0 and self._state is SessionState.SOLVING:
            self._transition(SessionState.READY)

    async def solve(self, model_text: str, payload: ModelPayload, config: SolverConfig) -> SolveResult:
        """Solve one model instance.

        Args:
            model_text: MiniZinc model source.
            payload: Model data, index-aligned with the roster.
            config: Solver id, time limit and all-solutions flag.

        Returns:
            SolveResult. Engine-side problems come back as ERROR or UNKNOWN.

        Raises:
            UnsupportedSolverError: Solver id not usable in this context. The
                engine is never invoked in that case.
            SessionStateError: Session not READY (or a second sandboxed solve).
        """
        check_solver(config.solver_id, self.context, self.capabilities)
        self._enter_solve()
        try:
            return await self._run(model_text, payload, config)
        finally:
            self._leave_solve()

    async def _run(self, model_text: str, payload: ModelPayload, config: SolverConfig) -> SolveResult:
        deadline = (config.time_limit_millis + self.grace_millis) / 1000.0
        start_time = time.monotonic()

        def elapsed() -> int:
            return int(round((time.monotonic() - start_time) * 1000))

        logger.info(
            f"Solving {payload.player_count} players with {config.solver_id} "
            f"(limit {config.time_limit_millis}ms)"
        )
        try:
            raw: Any = await asyncio.wait_for(
                self._engine.solve(model_text, payload.to_model_data(), config.engine_options()),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Solver {config.solver_id} gave no result within {config.time_limit_millis}ms")
            return SolveResult(
                status=STATUS_UNKNOWN,
                elapsed_millis=elapsed(),
                error_detail=f'No solution within the {config.time_limit_millis}ms time limit',
            )
        except EngineFailure as e:
            logger.error(f"Solver {config.solver_id} failed: {e}")
            return SolveResult(
                status=STATUS_ERROR,
                statistics=e.statistics,
                elapsed_millis=elapsed(),
                error_detail=describe_error(e),
            )
        except Exception as e:
            logger.exception(f"Solver {config.solver_id} raised an unexpected error")
            return SolveResult(
                status=STATUS_ERROR,
                elapsed_millis=elapsed(),
                error_detail=describe_error(e),
            )

        result = normalize(raw, elapsed_millis=elapsed(), expected_length=payload.player_count)
        logger.info(f"Solver {config.solver_id} finished: {result.status} in {result.elapsed_millis}ms")
        return result

    async def close(self) -> None:
        """Shut the engine down. Further solves raise SessionStateError."""
        if self._state is SessionState.CLOSED:
            return
        try:
            await self._engine.close()
        finally:
            self._transition(SessionState.CLOSED)

    async def __aenter__(self) -> 'SolverSession':
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
