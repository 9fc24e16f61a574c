"""Execution context detection.

The context is detected once at process start and then passed explicitly to
every component that needs it. Nothing in the solver core reads ambient
globals to find out where it runs.
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from typing import Optional, Union

logger = logging.getLogger(__name__)


class ExecutionContext(str, Enum):
    """Where the engine runs: a native executable or the in-browser WASM build."""
    NATIVE = 'native'
    SANDBOXED = 'sandboxed'


@lru_cache(maxsize=None)
def detect_execution_context() -> ExecutionContext:
    """Inspect the interpreter once and cache the answer.

    Pyodide reports the ``emscripten`` platform when running inside a browser.
    Anything else, including an inconclusive check, is treated as native.
    """
    if getattr(sys, 'platform', '') == 'emscripten':
        logger.debug("Detected sandboxed (browser) execution context")
        return ExecutionContext.SANDBOXED
    logger.debug("Detected native execution context")
    return ExecutionContext.NATIVE


def resolve_execution_context(
    override: Optional[Union[str, ExecutionContext]] = None
) -> ExecutionContext:
    """Turn a configured override into a context, detecting when it is empty.

    Args:
        override: 'native', 'sandboxed', an ExecutionContext, or None/'' for auto.

    Returns:
        The context to inject into sessions and capability checks.

    Raises:
        ValueError: If the override names no known context.
    """
    if override is None or override == '' or override == 'auto':
        return detect_execution_context()
    if isinstance(override, ExecutionContext):
        return override
    try:
        return ExecutionContext(str(override).strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown execution context '{override}'. Expected 'native', 'sandboxed' or 'auto'."
        ) from None
