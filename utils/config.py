"""Central Configuration Module

Provides a single source of truth for all team optimizer configuration values.
Loads settings from config.yml and exposes typed constants for use throughout
the codebase. A few deployment settings can be overridden from the environment
(MINIZINC_BIN, MINIZINC_AVAILABLE_SOLVERS, TEAM_OPTIMIZER_CONTEXT).

Usage:
    from utils.config import MINIZINC_BIN, DEFAULT_SOLVER, SOLVER_TIME_LIMIT_MS
"""

import os
from pathlib import Path
from typing import Dict, List, Optional, Any
import yaml


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def load_config() -> Dict[str, Any]:
    """Load configuration from config.yml.

    The TEAM_OPTIMIZER_CONFIG environment variable may point at another file.

    Returns:
        Dict with config values or empty dict if not found.
    """
    config_path = Path(os.environ.get('TEAM_OPTIMIZER_CONFIG') or _get_project_root() / 'config.yml')

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}
    return {}


def _split_list(value: Any) -> List[str]:
    """Accept either a YAML list or a comma-separated string."""
    if not value:
        return []
    if isinstance(value, str):
        return [s.strip() for s in value.split(',') if s.strip()]
    return [str(s).strip() for s in value if str(s).strip()]


# Load config at module level (singleton pattern)
_CONFIG = load_config()


# =============================================================================
# MINIZINC ENGINE
# =============================================================================

_MINIZINC_CONFIG = _CONFIG.get('minizinc', {})

MINIZINC: Dict[str, Any] = {
    'binary': os.environ.get('MINIZINC_BIN') or _MINIZINC_CONFIG.get('binary', 'minizinc'),
    'available_solvers': _split_list(
        os.environ.get('MINIZINC_AVAILABLE_SOLVERS') or _MINIZINC_CONFIG.get('available_solvers')
    ),
}

# Convenience accessors
MINIZINC_BIN: str = MINIZINC['binary']
MINIZINC_AVAILABLE_SOLVERS: List[str] = MINIZINC['available_solvers']


# =============================================================================
# SOLVER DEFAULTS
# =============================================================================

_SOLVER_CONFIG = _CONFIG.get('solver', {})

SOLVER: Dict[str, Any] = {
    'default_solver': _SOLVER_CONFIG.get('default_solver'),
    'time_limit_ms': _SOLVER_CONFIG.get('time_limit_ms', 10000),
    'grace_ms': _SOLVER_CONFIG.get('grace_ms', 1000),
    'default_scenario': _SOLVER_CONFIG.get('default_scenario', 'ratings_only'),
}

# Convenience accessors
DEFAULT_SOLVER: Optional[str] = SOLVER['default_solver']
SOLVER_TIME_LIMIT_MS: int = SOLVER['time_limit_ms']
SOLVER_GRACE_MS: int = SOLVER['grace_ms']
DEFAULT_SCENARIO: str = SOLVER['default_scenario']


# =============================================================================
# EXECUTION CONTEXT
# =============================================================================

_EXECUTION_CONFIG = _CONFIG.get('execution', {})

# 'native', 'sandboxed' or 'auto' (inspect the interpreter)
EXECUTION_CONTEXT: str = os.environ.get('TEAM_OPTIMIZER_CONTEXT') or _EXECUTION_CONFIG.get('context', 'auto')


# =============================================================================
# WASM ASSETS (sandboxed engine)
# =============================================================================

_WASM_CONFIG = _CONFIG.get('wasm', {})

WASM: Dict[str, str] = {
    'worker_url': _WASM_CONFIG.get('worker_url', './minizinc-worker.js'),
    'wasm_url': _WASM_CONFIG.get('wasm_url', './minizinc.wasm'),
    'data_url': _WASM_CONFIG.get('data_url', './minizinc.data'),
}


# =============================================================================
# HTTP SERVER
# =============================================================================

_SERVER_CONFIG = _CONFIG.get('server', {})

SERVER: Dict[str, Any] = {
    'host': _SERVER_CONFIG.get('host', '127.0.0.1'),
    'port': _SERVER_CONFIG.get('port', 3000),
}

# Convenience accessors
SERVER_HOST: str = SERVER['host']
SERVER_PORT: int = SERVER['port']


# =============================================================================
# LOGGING
# =============================================================================

_LOGGING_CONFIG = _CONFIG.get('logging', {})

LOG_LEVEL: str = str(_LOGGING_CONFIG.get('level', 'INFO')).upper()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def reload_config() -> None:
    """Reload configuration from disk and the environment.

    Updates all module-level constants. Useful for testing or when
    config.yml changes during runtime.
    """
    global _CONFIG, MINIZINC, MINIZINC_BIN, MINIZINC_AVAILABLE_SOLVERS
    global SOLVER, DEFAULT_SOLVER, SOLVER_TIME_LIMIT_MS, SOLVER_GRACE_MS, DEFAULT_SCENARIO
    global EXECUTION_CONTEXT, WASM, SERVER, SERVER_HOST, SERVER_PORT, LOG_LEVEL

    _CONFIG = load_config()

    _mz = _CONFIG.get('minizinc', {})
    MINIZINC = {
        'binary': os.environ.get('MINIZINC_BIN') or _mz.get('binary', 'minizinc'),
        'available_solvers': _split_list(
            os.environ.get('MINIZINC_AVAILABLE_SOLVERS') or _mz.get('available_solvers')
        ),
    }
    MINIZINC_BIN = MINIZINC['binary']
    MINIZINC_AVAILABLE_SOLVERS = MINIZINC['available_solvers']

    _sv = _CONFIG.get('solver', {})
    SOLVER = {
        'default_solver': _sv.get('default_solver'),
        'time_limit_ms': _sv.get('time_limit_ms', 10000),
        'grace_ms': _sv.get('grace_ms', 1000),
        'default_scenario': _sv.get('default_scenario', 'ratings_only'),
    }
    DEFAULT_SOLVER = SOLVER['default_solver']
    SOLVER_TIME_LIMIT_MS = SOLVER['time_limit_ms']
    SOLVER_GRACE_MS = SOLVER['grace_ms']
    DEFAULT_SCENARIO = SOLVER['default_scenario']

    EXECUTION_CONTEXT = os.environ.get('TEAM_OPTIMIZER_CONTEXT') or _CONFIG.get('execution', {}).get('context', 'auto')

    _wasm = _CONFIG.get('wasm', {})
    WASM = {
        'worker_url': _wasm.get('worker_url', './minizinc-worker.js'),
        'wasm_url': _wasm.get('wasm_url', './minizinc.wasm'),
        'data_url': _wasm.get('data_url', './minizinc.data'),
    }

    _srv = _CONFIG.get('server', {})
    SERVER = {'host': _srv.get('host', '127.0.0.1'), 'port': _srv.get('port', 3000)}
    SERVER_HOST = SERVER['host']
    SERVER_PORT = SERVER['port']

    LOG_LEVEL = str(_CONFIG.get('logging', {}).get('level', 'INFO')).upper()
