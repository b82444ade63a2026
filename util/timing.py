# util/timing.py
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Dict, Any
import logging


@dataclass
class Elapsed:
    ms: int = 0


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Dict[str, Any]) -> Iterator[Elapsed]:
    """
    Usage:
      with timed(logger, "match.run", claims=12) as t:
          ...
      t.ms  # duration once the block exits
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    """
    elapsed = Elapsed()
    t0 = time.perf_counter()
    try:
        yield elapsed
    finally:
        elapsed.ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.done ms=%d%s", name, elapsed.ms, suffix)
