"""Unit tests for engine response normalization."""

import sys
import unittest
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

# Add repo root to path for imports
REPO_ROOT = Path(__file__).resolve().parents[1]
for _path in (REPO_ROOT, Path(__file__).resolve().parent):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from minizinc import Status

from engine_stubs import minizinc_js_response
from solver.normalizer import (
    MappingResponse,
    StructuredResponse,
    TextResponse,
    UnrecognizedResponse,
    classify_response,
    normalize,
    wrap_result,
)


@dataclass
class _Solution:
    """Mimics the solution dataclass minizinc-python generates for a model."""
    assignment: Any
    objective: int = 0
    _output_item: str = ''


@dataclass
class _Result:
    """Mimics minizinc.Result."""
    status: Any
    solution: Any
    statistics: Any


class _HostileResult:
    """Object whose every attribute lookup blows up."""

    def __getattr__(self, name):
        raise RuntimeError(f'no {name} here')


class TestClassifyResponse(unittest.TestCase):
    """Tests for tagging response shapes."""

    def test_shapes(self):
        self.assertIsInstance(classify_response({'status': 'OPTIMAL'}), MappingResponse)
        self.assertIsInstance(classify_response('{"assignment": [0]}'), TextResponse)
        self.assertIsInstance(classify_response(b'{}'), TextResponse)
        self.assertIsInstance(
            classify_response(_Result(Status.UNKNOWN, None, None)), StructuredResponse
        )
        for raw in (None, 42, [0, 1], object()):
            self.assertIsInstance(classify_response(raw), UnrecognizedResponse)


class TestNormalizeSandboxedShape(unittest.TestCase):
    """minizinc-js results converted to Python mappings."""

    def test_optimal_solution(self):
        result = normalize(minizinc_js_response([0, 1, 1, 0]), elapsed_millis=37, expected_length=4)
        self.assertEqual(result.status, 'OPTIMAL')
        self.assertEqual(result.assignment, (0, 1, 1, 0))
        self.assertEqual(result.statistics, {'nodes': 12, 'failures': 3})
        self.assertEqual(result.elapsed_millis, 37)
        self.assertIsNone(result.error_detail)

    def test_all_solutions_maps_to_satisfied(self):
        result = normalize(minizinc_js_response([1, 0], status='ALL_SOLUTIONS'))
        self.assertEqual(result.status, 'SATISFIED')
        self.assertEqual(result.assignment, (1, 0))

    def test_unsatisfiable_has_no_assignment(self):
        result = normalize({'status': 'UNSATISFIABLE', 'statistics': {'nodes': 4}})
        self.assertEqual(result.status, 'UNSATISFIABLE')
        self.assertIsNone(result.assignment)
        self.assertEqual(result.statistics, {'nodes': 4})

    def test_error_status_keeps_message(self):
        result = normalize({'status': 'ERROR', 'errorMessage': 'type error in model'})
        self.assertEqual(result.status, 'ERROR')
        self.assertEqual(result.error_detail, 'type error in model')
        self.assertIsNone(result.assignment)

    def test_list_of_solutions_uses_last(self):
        raw = {
            'status': 'ALL_SOLUTIONS',
            'solution': [{'assignment': [0, 1]}, {'assignment': [1, 0]}],
        }
        self.assertEqual(normalize(raw).assignment, (1, 0))


class TestNormalizeNativeShape(unittest.TestCase):
    """minizinc-python Result objects."""

    def test_result_object_with_output_item(self):
        raw = _Result(
            status=Status.OPTIMAL_SOLUTION,
            solution=_Solution(
                assignment=[0, 1, 1, 0],
                objective=4,
                _output_item='{"assignment": [0, 1, 1, 0], "rating_difference": 4}\n',
            ),
            statistics={'nodes': 5, 'solveTime': timedelta(milliseconds=250), 'method': 'minimize'},
        )
        result = normalize(raw, expected_length=4)
        self.assertEqual(result.status, 'OPTIMAL')
        self.assertEqual(result.assignment, (0, 1, 1, 0))
        self.assertEqual(result.statistics, {'nodes': 5, 'solveTime': 0.25})

    def test_satisfied_status_enum(self):
        raw = _Result(Status.SATISFIED, _Solution(assignment=[1, 0]), None)
        result = normalize(raw)
        self.assertEqual(result.status, 'SATISFIED')
        self.assertEqual(result.assignment, (1, 0))
        self.assertIsNone(result.statistics)

    def test_unsatisfiable(self):
        result = normalize(_Result(Status.UNSATISFIABLE, None, {}))
        self.assertEqual(result.status, 'UNSATISFIABLE')
        self.assertIsNone(result.assignment)


class TestPrecedence(unittest.TestCase):
    """Field precedence across the accepted shapes."""

    def test_embedded_status_wins_over_direct_status(self):
        raw = {'status': 'OPTIMAL_SOLUTION', 'output': '{"status": "UNSATISFIABLE"}'}
        result = normalize(raw)
        self.assertEqual(result.status, 'UNSATISFIABLE')
        self.assertIsNone(result.assignment)

    def test_nested_result_status(self):
        raw = {'result': {'status': 'SATISFIED', 'assignment': [0, 1]}}
        result = normalize(raw)
        self.assertEqual(result.status, 'SATISFIED')
        self.assertEqual(result.assignment, (0, 1))

    def test_parsed_block_without_status_is_optimal(self):
        text = '{"assignment": [0, 1, 1, 0]}\n----------\n==========\n'
        result = normalize(text)
        self.assertEqual(result.status, 'OPTIMAL')
        self.assertEqual(result.assignment, (0, 1, 1, 0))

    def test_embedded_statistics_win(self):
        raw = {
            'status': 'OPTIMAL',
            'output': '{"assignment": [0, 1], "statistics": {"nodes": 99}}',
            'statistics': {'nodes': 1},
        }
        self.assertEqual(normalize(raw).statistics, {'nodes': 99})

    def test_statistics_values_are_coerced(self):
        raw = {
            'status': 'SATISFIED',
            'solution': {'assignment': [1, 0]},
            'statistics': {
                'time': timedelta(milliseconds=1500),
                'nodes': '7',
                'flag': True,
                'bad': float('nan'),
                'label': 'cbc',
            },
        }
        self.assertEqual(normalize(raw).statistics, {'time': 1.5, 'nodes': 7})


class TestMalformedResponses(unittest.TestCase):
    """Nothing the engine sends may crash the normalizer."""

    def test_unrecognized_inputs_become_unknown(self):
        for raw in (None, 42, [], [0, 1], object(), '', 'not json at all', _HostileResult()):
            result = normalize(raw)
            self.assertEqual(result.status, 'UNKNOWN', msg=repr(raw))
            self.assertIsNone(result.assignment)

    def test_unrecognized_status_string(self):
        result = normalize({'status': 'WEIRD', 'solution': {'assignment': [0, 1]}})
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)
        self.assertIn('WEIRD', result.error_detail)

    def test_non_binary_assignment_downgrades(self):
        raw = {'status': 'OPTIMAL_SOLUTION', 'solution': {'output': {'json': {'assignment': [0, 2]}}}}
        result = normalize(raw)
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)
        self.assertIn('non-binary', result.error_detail)

    def test_assignment_not_a_sequence_downgrades(self):
        result = normalize({'status': 'OPTIMAL', 'solution': {'assignment': '0110'}})
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)

    def test_feasible_without_assignment_downgrades(self):
        result = normalize({'status': 'OPTIMAL_SOLUTION', 'solution': {'objective': 3}})
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)

    def test_length_mismatch_downgrades(self):
        result = normalize(minizinc_js_response([0, 1]), expected_length=4)
        self.assertEqual(result.status, 'UNKNOWN')
        self.assertIsNone(result.assignment)
        self.assertIn('expected 4', result.error_detail)

    def test_unparsable_output_falls_through(self):
        raw = {'status': 'OPTIMAL', 'output': '{broken', 'solution': {'assignment': [1, 0]}}
        result = normalize(raw)
        self.assertEqual(result.status, 'OPTIMAL')
        self.assertEqual(result.assignment, (1, 0))


class TestIdempotence(unittest.TestCase):
    """Normalizing a relayed result again yields the same result."""

    def assertStable(self, raw, expected_length=None):
        first = normalize(raw, elapsed_millis=12, expected_length=expected_length)
        second = normalize(wrap_result(first), elapsed_millis=12, expected_length=expected_length)
        self.assertEqual(first, second)

    def test_optimal(self):
        self.assertStable(minizinc_js_response([0, 1, 1, 0]), expected_length=4)

    def test_native_result(self):
        self.assertStable(_Result(Status.SATISFIED, _Solution(assignment=[1, 0]), {'nodes': 3}))

    def test_error(self):
        self.assertStable({'status': 'ERROR', 'errorMessage': 'boom'})

    def test_unknown_with_detail(self):
        self.assertStable({'status': 'UNKNOWN', 'error': 'no solution found'})

    def test_downgraded(self):
        self.assertStable(minizinc_js_response([0, 1]), expected_length=4)


if __name__ == '__main__':
    unittest.main()
