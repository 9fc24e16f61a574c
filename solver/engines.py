"""MiniZinc engine adapters.

Two engines sit behind the same small async interface:

- NativeEngine drives the ``minizinc`` executable through minizinc-python.
- SandboxedEngine drives the minizinc-js WebAssembly build from Pyodide,
  where there is no filesystem or subprocess and only the JS API is reachable.

Engines return their client library's raw result untouched; the session hands
it to the normalizer. Callers never use an engine directly, only through a
SolverSession that owns it.
"""

import asyncio
import logging
import shutil
from datetime import timedelta
from functools import partial
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from minizinc import Driver, Instance, Method, Model, Solver
from minizinc.error import MiniZincError

from .context import ExecutionContext
from .errors import EngineFailure, InitializationError, describe_error

logger = logging.getLogger(__name__)

MODEL_FILENAME = 'team-assignment.mzn'


class Engine:
    """Interface shared by the native and sandboxed engines."""

    context: ExecutionContext

    async def start(self) -> None:
        """Make the engine reachable. Raises InitializationError."""
        raise NotImplementedError

    async def solve(self, model_text: str, data: Mapping[str, Any], options: Mapping[str, Any]) -> Any:
        """Run one solve and return the client library's raw result."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release the engine handle."""


class NativeEngine(Engine):
    """MiniZinc executable driven through minizinc-python."""

    context = ExecutionContext.NATIVE

    def __init__(self, executable: str = 'minizinc'):
        self.executable = executable
        self._driver: Optional[Driver] = None
        self.version: Optional[str] = None

    async def start(self) -> None:
        path = shutil.which(self.executable)
        if path is None:
            raise InitializationError(
                f"MiniZinc executable '{self.executable}' not found or not executable. "
                f"Install MiniZinc or set MINIZINC_BIN."
            )

        loop = asyncio.get_running_loop()
        try:
            driver = Driver(Path(path))
            # Driver only stores the path; asking for the version runs the binary
            self.version = await loop.run_in_executor(None, lambda: driver.minizinc_version)
        except Exception as e:
            raise InitializationError(f"Could not run MiniZinc at {path}: {describe_error(e)}") from e

        self._driver = driver
        logger.info(f"MiniZinc {self.version} ready at {path}")

    def _build_instance(self, model_text: str, data: Mapping[str, Any], solver_id: str) -> Instance:
        solver = Solver.lookup(solver_id, driver=self._driver)
        model = Model()
        model.add_string(model_text)
        instance = Instance(solver, model, driver=self._driver)
        for key, value in data.items():
            instance[key] = value
        return instance

    async def solve(self, model_text: str, data: Mapping[str, Any], options: Mapping[str, Any]) -> Any:
        if self._driver is None:
            raise EngineFailure('Native engine has not been started')

        loop = asyncio.get_running_loop()
        try:
            # Solver lookup and model analysis both shell out to minizinc
            instance = await loop.run_in_executor(
                None, partial(self._build_instance, model_text, data, options['solver'])
            )

            # minizinc-python always requests statistics itself
            kwargs: Dict[str, Any] = {
                'timeout': timedelta(milliseconds=int(options['time-limit'])),
            }
            if options.get('all-solutions'):
                if instance.method == Method.SATISFY:
                    kwargs['all_solutions'] = True
                else:
                    kwargs['intermediate_solutions'] = True

            return await instance.solve_async(**kwargs)
        except LookupError as e:
            raise EngineFailure(
                f"Solver '{options['solver']}' is not installed for MiniZinc at {self.executable}: {describe_error(e)}"
            ) from e
        except (MiniZincError, NotImplementedError, OSError) as e:
            raise EngineFailure(describe_error(e)) from e

    async def close(self) -> None:
        self._driver = None


class SandboxedEngine(Engine):
    """minizinc-js WebAssembly build, reached from Pyodide.

    The page must load minizinc-js so that ``MiniZinc`` is a JS global. The
    engine is single threaded: one solve at a time.
    """

    context = ExecutionContext.SANDBOXED

    def __init__(
        self,
        worker_url: str = './minizinc-worker.js',
        wasm_url: str = './minizinc.wasm',
        data_url: str = './minizinc.data'
    ):
        self.worker_url = worker_url
        self.wasm_url = wasm_url
        self.data_url = data_url
        self._minizinc = None
        self._to_js = None

    async def start(self) -> None:
        try:
            import js
            from pyodide.ffi import to_js
        except ImportError as e:
            raise InitializationError('Sandboxed engine needs the Pyodide runtime') from e

        minizinc_js = getattr(js, 'MiniZinc', None)
        if minizinc_js is None:
            raise InitializationError('minizinc-js is not loaded (no MiniZinc global on the page)')

        self._to_js = partial(to_js, dict_converter=js.Object.fromEntries)
        try:
            await minizinc_js.init(self._to_js({
                'workerURL': self.worker_url,
                'wasmURL': self.wasm_url,
                'dataURL': self.data_url,
            }))
        except Exception as e:
            raise InitializationError(f"Failed to load MiniZinc WASM assets: {describe_error(e)}") from e

        self._minizinc = minizinc_js
        logger.info(f"MiniZinc WASM ready ({self.wasm_url})")

    async def solve(self, model_text: str, data: Mapping[str, Any], options: Mapping[str, Any]) -> Any:
        if self._minizinc is None:
            raise EngineFailure('Sandboxed engine has not been started')

        model = self._minizinc.Model.new()
        model.addFile(MODEL_FILENAME, model_text)
        model.addJson(self._to_js(dict(data)))
        try:
            # The solve handle is a JS thenable; Pyodide makes it awaitable
            result = await model.solve(self._to_js({'options': dict(options)}))
        except Exception as e:
            raise EngineFailure(describe_error(e)) from e
        return result.to_py() if hasattr(result, 'to_py') else result

    async def close(self) -> None:
        self._minizinc = None


def create_engine(
    context: ExecutionContext,
    executable: str = 'minizinc',
    wasm: Optional[Mapping[str, str]] = None
) -> Engine:
    """Build the engine matching an execution context."""
    if context is ExecutionContext.SANDBOXED:
        wasm = wasm or {}
        return SandboxedEngine(
            worker_url=wasm.get('worker_url', './minizinc-worker.js'),
            wasm_url=wasm.get('wasm_url', './minizinc.wasm'),
            data_url=wasm.get('data_url', './minizinc.data'),
        )
    return NativeEngine(executable=executable)
