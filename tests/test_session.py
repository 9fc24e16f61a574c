"""Tests for the solver session lifecycle and solve outcomes."""

import asyncio
import sys
import unittest
from pathlib import Path

# Add repo root to path for imports
REPO_ROOT = Path(__file__).resolve().parents[1]
for _path in (REPO_ROOT, Path(__file__).resolve().parent):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from engine_stubs import ROSTER_CSV, StubEngine, minizinc_js_response
from roster.loader import parse_roster_csv
from roster.payload import build_payload
from solver.context import ExecutionContext
from solver.definitions import SolverConfig
from solver.errors import (
    EngineFailure,
    InitializationError,
    SessionStateError,
    UnsupportedSolverError,
)
from solver.session import SessionState, SolverSession

MODEL_TEXT = 'array[1..num_players] of var 0..1: assignment;'


class SessionTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.payload = build_payload(parse_roster_csv(ROSTER_CSV))

    def make_session(self, context=ExecutionContext.NATIVE, grace_millis=1000, **engine_kwargs):
        engine_kwargs.setdefault('response', minizinc_js_response([0, 1, 1, 0]))
        engine = StubEngine(context=context, **engine_kwargs)
        return engine, SolverSession(engine, context, grace_millis=grace_millis)


class TestSessionLifecycle(SessionTestCase):
    """State transitions."""

    async def test_init_moves_to_ready(self):
        engine, session = self.make_session()
        self.assertIs(session.state, SessionState.UNINITIALIZED)
        await session.init()
        self.assertIs(session.state, SessionState.READY)
        await session.init()
        self.assertEqual(engine.start_calls, 1)

    async def test_init_failure_allows_retry(self):
        engine, session = self.make_session(start_error=InitializationError('minizinc not found'))
        with self.assertRaises(InitializationError):
            await session.init()
        self.assertIs(session.state, SessionState.UNINITIALIZED)

        engine.start_error = None
        await session.init()
        self.assertIs(session.state, SessionState.READY)
        self.assertEqual(engine.start_calls, 2)

    async def test_unexpected_start_error_is_wrapped(self):
        _, session = self.make_session(start_error=RuntimeError('wasm fetch failed'))
        with self.assertRaises(InitializationError) as ctx:
            await session.init()
        self.assertIn('wasm fetch failed', str(ctx.exception))
        self.assertIs(session.state, SessionState.UNINITIALIZED)

    async def test_solve_before_init_is_rejected(self):
        engine, session = self.make_session()
        with self.assertRaises(SessionStateError):
            await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc'))
        self.assertEqual(engine.calls, [])

    async def test_close(self):
        engine, session = self.make_session()
        await session.init()
        await session.close()
        self.assertIs(session.state, SessionState.CLOSED)
        self.assertTrue(engine.closed)

        with self.assertRaises(SessionStateError):
            await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc'))
        with self.assertRaises(SessionStateError):
            await session.init()
        await session.close()

    async def test_async_context_manager(self):
        engine, session = self.make_session()
        async with session as active:
            self.assertIs(active.state, SessionState.READY)
        self.assertIs(session.state, SessionState.CLOSED)
        self.assertTrue(engine.closed)


class TestSessionSolve(SessionTestCase):
    """Solve outcomes."""

    async def test_optimal_solve(self):
        engine, session = self.make_session()
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc', 5000))

        self.assertEqual(result.status, 'OPTIMAL')
        self.assertEqual(result.assignment, (0, 1, 1, 0))
        self.assertEqual(result.statistics, {'nodes': 12, 'failures': 3})
        self.assertGreaterEqual(result.elapsed_millis, 0)
        self.assertIs(session.state, SessionState.READY)

        call = engine.calls[0]
        self.assertEqual(call['model_text'], MODEL_TEXT)
        self.assertEqual(call['data'], {
            'num_players': 4,
            'ratings': [8, 6, 7, 9],
            'position_indices': [1, 3, 2, 1],
        })
        self.assertEqual(call['options'], {
            'solver': 'cbc',
            'time-limit': 5000,
            'statistics': True,
            'all-solutions': False,
        })

    async def test_unsupported_solver_never_reaches_engine(self):
        engine, session = self.make_session()
        await session.init()
        with self.assertRaises(UnsupportedSolverError):
            await session.solve(MODEL_TEXT, self.payload, SolverConfig('gecode'))
        self.assertEqual(engine.calls, [])
        self.assertIs(session.state, SessionState.READY)

    async def test_sandboxed_accepts_gecode(self):
        engine, session = self.make_session(context=ExecutionContext.SANDBOXED)
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('gecode'))
        self.assertEqual(result.status, 'OPTIMAL')
        self.assertEqual(len(engine.calls), 1)

    async def test_timeout_returns_unknown(self):
        _, session = self.make_session(grace_millis=0, delay=2.0)
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc', 50))

        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)
        self.assertGreaterEqual(result.elapsed_millis, 45)
        self.assertIn('50ms', result.error_detail)
        self.assertIs(session.state, SessionState.READY)

    async def test_engine_failure_returns_error(self):
        failure = EngineFailure('solver crashed', statistics={'nodes': 2})
        _, session = self.make_session(error=failure)
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc'))

        self.assertEqual(result.status, 'ERROR')
        self.assertIsNone(result.assignment)
        self.assertEqual(result.error_detail, 'solver crashed')
        self.assertEqual(result.statistics, {'nodes': 2})
        self.assertIs(session.state, SessionState.READY)

    async def test_unexpected_engine_exception_returns_error(self):
        _, session = self.make_session(error=ValueError('bad handle'))
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc'))
        self.assertEqual(result.status, 'ERROR')
        self.assertEqual(result.error_detail, 'bad handle')

    async def test_malformed_response_returns_unknown(self):
        _, session = self.make_session(response='garbage')
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc'))
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)

    async def test_short_assignment_downgrades(self):
        _, session = self.make_session(response=minizinc_js_response([0, 1]))
        await session.init()
        result = await session.solve(MODEL_TEXT, self.payload, SolverConfig('cbc'))
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)


class TestSessionConcurrency(SessionTestCase):
    """Overlapping solves."""

    async def test_sandboxed_rejects_second_solve(self):
        _, session = self.make_session(context=ExecutionContext.SANDBOXED, delay=0.2)
        await session.init()
        config = SolverConfig('gecode')

        first = asyncio.create_task(session.solve(MODEL_TEXT, self.payload, config))
        await asyncio.sleep(0.05)
        self.assertIs(session.state, SessionState.SOLVING)
        with self.assertRaises(SessionStateError):
            await session.solve(MODEL_TEXT, self.payload, config)

        result = await first
        self.assertEqual(result.status, 'OPTIMAL')
        self.assertIs(session.state, SessionState.READY)

    async def test_native_allows_overlapping_solves(self):
        engine, session = self.make_session(delay=0.1)
        await session.init()
        config = SolverConfig('cbc')

        results = await asyncio.gather(
            session.solve(MODEL_TEXT, self.payload, config),
            session.solve(MODEL_TEXT, self.payload, config),
        )
        self.assertEqual([r.status for r in results], ['OPTIMAL', 'OPTIMAL'])
        self.assertEqual(len(engine.calls), 2)
        self.assertIs(session.state, SessionState.READY)


if __name__ == '__main__':
    unittest.main()
