"""
Drift analysis.

Runs the planning tool for every project under bounded concurrency and
suppresses findings for projects already being changed by an open PR.
"""

from .detector import DriftDetector
from .models import DriftDetectionResult, DriftProjectResult
from .skip import handle_skip_if_contains_pr_changes

__all__ = [
    'DriftDetector', 'DriftDetectionResult', 'DriftProjectResult',
    'handle_skip_if_contains_pr_changes',
]
