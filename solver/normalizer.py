"""Result Normalizer

Reconciles the response shapes of the two engines into one SolveResult.

The native engine (minizinc-python) returns a ``Result`` object whose solution
is a dataclass carrying the model's output variables plus the rendered output
item in ``_output_item``. The sandboxed engine (minizinc-js, converted from a
JS object) returns nested mappings where the decision variables sit under
``solution.output.json`` and the rendered text under ``solution.output.default``.
Either may also surface the model's output item as an embedded JSON text block.

Extraction is strictly defensive and follows a fixed precedence:

1. Embedded JSON text: ``output`` -> ``solution.output.default`` ->
   ``solution._output_item``. Parse failures fall through silently.
2. Status: parsed ``status`` -> ``status`` -> ``result.status`` ->
   ``solution.status`` -> OPTIMAL when a JSON block parsed -> UNKNOWN.
3. Solution: first candidate carrying an assignment, in the order parsed
   ``solution`` -> ``solution.output.json`` -> ``solution.solution`` ->
   ``solution`` -> ``result`` -> the parsed block itself -> None.
4. Statistics: parsed ``statistics`` -> ``statistics`` -> ``result.statistics``.

``normalize`` never raises; anything it cannot make sense of becomes UNKNOWN.
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from numbers import Number
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .definitions import (
    FEASIBLE_STATUSES,
    STATUS_ERROR,
    STATUS_OPTIMAL,
    STATUS_SATISFIED,
    STATUS_UNKNOWN,
    STATUS_UNSATISFIABLE,
    SolveResult,
)
from .errors import NormalizationAmbiguity

logger = logging.getLogger(__name__)

# Engine status vocabularies (minizinc-python Status names, minizinc-js
# strings, our own canonical names) -> canonical status.
STATUS_ALIASES: Dict[str, str] = {
    'OPTIMAL': STATUS_OPTIMAL,
    'OPTIMAL_SOLUTION': STATUS_OPTIMAL,
    'SATISFIED': STATUS_SATISFIED,
    'SATISFIABLE': STATUS_SATISFIED,
    'ALL_SOLUTIONS': STATUS_SATISFIED,
    'UNSATISFIABLE': STATUS_UNSATISFIABLE,
    'UNSAT_OR_UNBOUNDED': STATUS_UNSATISFIABLE,
    'UNBOUNDED': STATUS_UNKNOWN,
    'UNKNOWN': STATUS_UNKNOWN,
    'ERROR': STATUS_ERROR,
}

# Lines MiniZinc prints around solutions in text output
_SEPARATOR_PREFIXES = ('----------', '==========')


# =============================================================================
# RESPONSE SHAPES
# =============================================================================

@dataclass(frozen=True)
class StructuredResponse:
    """Attribute-style result object, e.g. ``minizinc.Result``."""
    raw: Any


@dataclass(frozen=True)
class MappingResponse:
    """Dictionary-shaped result, e.g. a converted minizinc-js result."""
    raw: Mapping


@dataclass(frozen=True)
class TextResponse:
    """Bare output text, possibly holding an embedded JSON block."""
    text: str


@dataclass(frozen=True)
class UnrecognizedResponse:
    """Anything else."""
    raw: Any


RawResponse = Union[StructuredResponse, MappingResponse, TextResponse, UnrecognizedResponse]


def classify_response(raw: Any) -> RawResponse:
    """Tag a raw engine response with the shape it arrived in."""
    if isinstance(raw, Mapping):
        return MappingResponse(raw)
    if isinstance(raw, (str, bytes)):
        text = raw.decode('utf-8', errors='replace') if isinstance(raw, bytes) else raw
        return TextResponse(text)
    if raw is not None and not isinstance(raw, (list, tuple, Number)) and (
        hasattr(raw, 'status') or hasattr(raw, 'solution')
    ):
        return StructuredResponse(raw)
    return UnrecognizedResponse(raw)


# =============================================================================
# FIELD ACCESS HELPERS
# =============================================================================

def _get(obj: Any, key: str) -> Any:
    """Read a key from a mapping or an attribute from an object."""
    if obj is None or isinstance(obj, (str, bytes, Number, list, tuple)):
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    try:
        return getattr(obj, key, None)
    except Exception:
        return None


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        obj = _get(obj, key)
        if obj is None:
            return None
    return obj


def _last_solution(obj: Any) -> Any:
    """All-solutions mode yields a list of solutions; the last is the best."""
    if isinstance(obj, (list, tuple)) and obj and not _is_number_list(obj):
        return obj[-1]
    return obj


def _is_number_list(obj: Any) -> bool:
    return isinstance(obj, (list, tuple)) and all(
        isinstance(v, Number) for v in obj
    )


def _first_present(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None and candidate != '':
            return candidate
    return None


# =============================================================================
# EXTRACTION STEPS
# =============================================================================

def _parse_embedded_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse an output text block as JSON, ignoring MiniZinc separator lines."""
    if not isinstance(text, str) or not text.strip():
        return None
    body = '\n'.join(
        line for line in text.splitlines()
        if not line.strip().startswith(_SEPARATOR_PREFIXES)
    ).strip()
    try:
        parsed = json.loads(body)
    except (ValueError, TypeError):
        logger.debug("Engine output text is not a JSON block")
        return None
    return parsed if isinstance(parsed, dict) else None


def _output_text(raw: Any) -> Optional[str]:
    solution = _last_solution(_get(raw, 'solution'))
    for candidate in (
        _get(raw, 'output'),
        _dig(solution, 'output', 'default'),
        _get(solution, '_output_item'),
    ):
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return None


def _canonical_status(value: Any) -> Tuple[str, Optional[str]]:
    """Map an engine status onto the canonical vocabulary.

    Returns:
        (status, ambiguity message or None)
    """
    name = getattr(value, 'name', value)
    key = str(name).strip().upper().replace(' ', '_')
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key], None
    return STATUS_UNKNOWN, f"Unrecognized engine status '{name}'"


def _extract_status(raw: Any, parsed: Optional[Dict[str, Any]]) -> Tuple[str, Optional[str]]:
    solution = _last_solution(_get(raw, 'solution'))
    value = _first_present(
        _get(parsed, 'status'),
        _get(raw, 'status'),
        _dig(raw, 'result', 'status'),
        _get(solution, 'status'),
    )
    if value is None:
        return (STATUS_OPTIMAL if parsed is not None else STATUS_UNKNOWN), None
    return _canonical_status(value)


def _solution_candidates(raw: Any, parsed: Optional[Dict[str, Any]]) -> List[Any]:
    solution = _last_solution(_get(raw, 'solution'))
    own_block = parsed if parsed is not None and 'assignment' in parsed else None
    return [
        _get(parsed, 'solution'),
        _dig(solution, 'output', 'json'),
        _get(solution, 'solution'),
        solution,
        _get(raw, 'result'),
        own_block,
    ]


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Number):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if number.is_integer() and '.' not in value else number
    return None


def _extract_statistics(raw: Any, parsed: Optional[Dict[str, Any]]) -> Optional[Dict[str, float]]:
    source = _first_present(
        _get(parsed, 'statistics'),
        _get(raw, 'statistics'),
        _dig(raw, 'result', 'statistics'),
    )
    if not isinstance(source, Mapping):
        return None
    stats = {}
    for key, value in source.items():
        number = _coerce_number(value)
        if number is not None:
            stats[str(key)] = number
    return stats or None


def _extract_assignment(payload: Any) -> Optional[Tuple[int, ...]]:
    """Pull the 0/1 assignment out of a solution payload.

    Raises:
        NormalizationAmbiguity: If an assignment is present but not 0/1 valued.
    """
    if _is_number_list(payload):
        values = payload
    else:
        values = _get(payload, 'assignment')
    if values is None:
        return None
    if not isinstance(values, (list, tuple)):
        raise NormalizationAmbiguity(f"Assignment is not a sequence: {type(values).__name__}")

    assignment = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, Number) or value not in (0, 1):
            raise NormalizationAmbiguity(f"Assignment contains non-binary value {value!r}")
        assignment.append(int(value))
    return tuple(assignment)


def _extract_solution_assignment(raw: Any, parsed: Optional[Dict[str, Any]]) -> Optional[Tuple[int, ...]]:
    """First assignment found along the solution precedence chain."""
    for candidate in _solution_candidates(raw, parsed):
        if candidate is None:
            continue
        assignment = _extract_assignment(_last_solution(candidate))
        if assignment is not None:
            return assignment
    return None


def _error_message(raw: Any) -> Optional[str]:
    for key in ('errorMessage', 'error_detail', 'error', 'message'):
        value = _get(raw, key)
        if isinstance(value, str) and value.strip():
            return value
    return None


# =============================================================================
# NORMALIZATION
# =============================================================================

def _normalize_fields(
    raw: Any,
    text: Optional[str],
    elapsed_millis: int,
    expected_length: Optional[int]
) -> SolveResult:
    parsed = _parse_embedded_json(text)
    status, ambiguity = _extract_status(raw, parsed)
    statistics = _extract_statistics(raw, parsed)

    if status == STATUS_ERROR:
        return SolveResult(
            status=STATUS_ERROR,
            statistics=statistics,
            elapsed_millis=elapsed_millis,
            error_detail=_error_message(raw) or _error_message(parsed) or 'Engine reported an error',
        )

    if status not in FEASIBLE_STATUSES:
        return SolveResult(
            status=status,
            statistics=statistics,
            elapsed_millis=elapsed_millis,
            error_detail=ambiguity or _error_message(raw),
        )

    try:
        assignment = _extract_solution_assignment(raw, parsed)
        if assignment is None:
            raise NormalizationAmbiguity(f"{status} response carries no assignment")
        if expected_length is not None and len(assignment) != expected_length:
            raise NormalizationAmbiguity(
                f"Assignment covers {len(assignment)} players, expected {expected_length}"
            )
    except NormalizationAmbiguity as e:
        logger.warning(f"Downgrading {status} response to UNKNOWN: {e}")
        return SolveResult(
            status=STATUS_UNKNOWN,
            statistics=statistics,
            elapsed_millis=elapsed_millis,
            error_detail=str(e),
        )

    return SolveResult(
        status=status,
        assignment=assignment,
        statistics=statistics,
        elapsed_millis=elapsed_millis,
    )


def normalize(
    raw: Any,
    elapsed_millis: int = 0,
    expected_length: Optional[int] = None
) -> SolveResult:
    """Canonicalize a raw engine response.

    Args:
        raw: Whatever the engine returned.
        elapsed_millis: Wall time of the engine call, copied into the result.
        expected_length: Player count the assignment must cover, if known.

    Returns:
        SolveResult. Never raises.
    """
    try:
        response = classify_response(raw)
        if isinstance(response, (StructuredResponse, MappingResponse)):
            return _normalize_fields(
                response.raw, _output_text(response.raw), elapsed_millis, expected_length
            )
        if isinstance(response, TextResponse):
            return _normalize_fields(None, response.text, elapsed_millis, expected_length)
    except Exception as e:
        logger.exception("Unexpected failure while normalizing engine response")
        return SolveResult(
            status=STATUS_UNKNOWN,
            elapsed_millis=elapsed_millis,
            error_detail=f"Could not normalize engine response: {e}",
        )

    return SolveResult(
        status=STATUS_UNKNOWN,
        elapsed_millis=elapsed_millis,
        error_detail=f"Unrecognized engine response of type {type(response.raw).__name__}",
    )


def wrap_result(result: SolveResult) -> Dict[str, Any]:
    """Render a SolveResult back into a raw mapping response that ``normalize`` accepts.

    Normalizing the returned mapping again yields an equal SolveResult.
    """
    data: Dict[str, Any] = {
        'status': result.status,
        'statistics': dict(result.statistics) if result.statistics is not None else None,
    }
    if result.assignment is not None:
        data['solution'] = {'assignment': list(result.assignment)}
    if result.error_detail:
        data['error_detail'] = result.error_detail
    return data
