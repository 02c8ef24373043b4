"""Alert redelivery job.

Modules:
- config: RedeliveryConfig dataclass
- runner: run_once (una tanda de reenvíos)
- cli: CLI entry point (main)
"""

from .config import RedeliveryConfig
from .runner import RedeliveryStats, run_once

__all__ = ["RedeliveryConfig", "RedeliveryStats", "run_once"]
