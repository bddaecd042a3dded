"""Profiling utilities for linsysjax.

Provides a context manager that annotates code sections in JAX profiler
traces and a timer used for per-system solve statistics.

Usage:
    from linsysjax.profiling import profile_section, SolveTimer

    with profile_section("solve_linear_system"):
        with SolveTimer() as timer:
            ok = backend.solve(...)
    print(f"Elapsed: {timer.elapsed_s:.3e}s")

Environment Variables:
    LINSYSJAX_PROFILE_JAX: Emit JAX trace annotations (1 or true)

Annotations only show up while a trace is being captured, e.g. inside
jax.profiler.trace(...), and can be viewed in Perfetto or TensorBoard.
"""

import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Optional

import jax

from linsysjax._logging import logger


def _env_bool(name: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(name, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


@dataclass(frozen=True)
class ProfileConfig:
    """Configuration for profiling (immutable for thread safety).

    Attributes:
        jax: Emit JAX trace annotations around profiled sections
    """

    jax: bool = field(default_factory=lambda: _env_bool("LINSYSJAX_PROFILE_JAX"))

    @property
    def enabled(self) -> bool:
        """Return True if any profiling is enabled."""
        return self.jax


# Global config with thread-safe access
_config_lock = threading.Lock()
_global_config: ProfileConfig = ProfileConfig()


def get_config() -> ProfileConfig:
    """Get the global profiling configuration (thread-safe)."""
    with _config_lock:
        return _global_config


def enable_profiling(jax: bool = True) -> None:
    """Enable profiling globally (thread-safe)."""
    global _global_config
    with _config_lock:
        _global_config = replace(_global_config, jax=jax)
    logger.debug(f"Profiling annotations {'enabled' if jax else 'disabled'}")


def disable_profiling() -> None:
    """Disable all profiling globally (thread-safe)."""
    global _global_config
    with _config_lock:
        _global_config = replace(_global_config, jax=False)


@contextmanager
def profile_section(name: str, config: Optional[ProfileConfig] = None):
    """Context manager annotating a code section in JAX traces.

    Args:
        name: Name for the profiled section (used in trace annotations)
        config: Profiling configuration (uses global config if None)
    """
    cfg = config or get_config()

    if not cfg.enabled:
        yield
        return

    with jax.profiler.TraceAnnotation(name):
        yield


class SolveTimer:
    """Wall-clock timer for one solve.

    Example:
        with SolveTimer() as timer:
            ok = solve(...)
        system.total_time += timer.elapsed_s
    """

    def __init__(self):
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None

    @property
    def elapsed_s(self) -> float:
        """Elapsed time in seconds."""
        if self._start_time is None or self._end_time is None:
            return 0.0
        return self._end_time - self._start_time

    def start(self) -> "SolveTimer":
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> "SolveTimer":
        self._end_time = time.perf_counter()
        return self

    def __enter__(self) -> "SolveTimer":
        return self.start()

    def __exit__(self, *args) -> None:
        self.stop()
