"""
Plan output classification.

Decides whether a plan reports drift and trims tool output down to the part
worth showing in an issue or pull request.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Output containing any of these means the plan found nothing to change.
NO_CHANGES_PATTERNS = (
    "Your infrastructure matches the configuration",
    "No changes. Infrastructure is up-to-date.",
)

CHANGES_REGEX = re.compile(r"(Terraform|OpenTofu) will perform the following actions:")
PLAN_FAILED_REGEX = re.compile(
    r"Planning failed\. (Terraform|OpenTofu) encountered an error while generating this plan\."
)
MISSING_OUT_ARG_REGEX = re.compile(
    r"Note: You didn't use the -out option to save this plan, so.*can't\s"
    r"guarantee to take exactly these actions if you run \".*apply\" now\."
)
REFRESH_KEYWORD = "Refreshing state..."

_TRIM_CHARS = " \n"


def is_drift_detected(output: str) -> bool:
    """
    Classify plan output.

    Only the exact no-changes phrases count as "no drift"; anything else,
    including output from an unknown tool version, is reported as drift.
    """
    for pattern in NO_CHANGES_PATTERNS:
        if pattern in output:
            return False
    return True


def parse_plan(output: str) -> str:
    """
    Extract the interesting part of a drifted plan.

    Returns:
        Output from the "Planning failed" marker if present, otherwise from the
        "will perform the following actions" marker (without the trailing -out
        disclaimer), otherwise the unmodified output
    """
    match = PLAN_FAILED_REGEX.search(output)
    if match:
        return output[match.start():].strip(_TRIM_CHARS)

    match = CHANGES_REGEX.search(output)
    if match:
        partial = output[match.start():].strip(_TRIM_CHARS)
        disclaimer = MISSING_OUT_ARG_REGEX.search(partial)
        if disclaimer:
            return partial[:disclaimer.start()].strip(_TRIM_CHARS)
        return partial

    logger.debug("No plan marker found in output, returning it unmodified")
    return output


def parse_error_output(output: str) -> str:
    """
    Drop the per-resource refresh noise from a failed command's output.

    Returns:
        Every line after the last line containing "Refreshing state...", or
        the full output if the keyword never occurs
    """
    lines = output.split("\n")
    last_refresh = -1
    for i, line in enumerate(lines):
        if REFRESH_KEYWORD in line:
            last_refresh = i

    if last_refresh == -1:
        logger.debug("No refresh keyword found in error output. Returning full output.")
        return output

    logger.debug(f"Refresh keyword found in error output. Returning output from line {last_refresh + 1}.")
    return "\n".join(lines[last_refresh + 1:])
