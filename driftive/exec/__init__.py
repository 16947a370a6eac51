"""
Execution adapters and plan output classification.

Adapters run terraform / tofu / terragrunt for a single project; the parsing
module decides drift vs. no drift and extracts display excerpts.
"""

from .executors import (
    EXECUTORS,
    INIT_ARGS,
    PLAN_ARGS,
    Executor,
    TerraformExecutor,
    TerragruntExecutor,
    TofuExecutor,
    new_executor,
)
from .parsing import is_drift_detected, parse_error_output, parse_plan

__all__ = [
    'EXECUTORS', 'INIT_ARGS', 'PLAN_ARGS', 'Executor', 'TerraformExecutor',
    'TerragruntExecutor', 'TofuExecutor', 'new_executor',
    'is_drift_detected', 'parse_error_output', 'parse_plan',
]
