"""Run external planning tools inside a project directory."""

import logging
import os
import signal
import subprocess
import threading
from typing import Dict, Optional, Sequence

from ..errors import ExecutionError

logger = logging.getLogger(__name__)

# How often a running command checks the cancellation event (seconds)
POLL_INTERVAL = 0.5
# Time a terminated process gets to exit before it is killed (seconds)
TERMINATE_GRACE = 10


def run_command_in_dir(
    directory: str,
    name: str,
    args: Sequence[str],
    env: Optional[Dict[str, str]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """
    Run a command in `directory` and return its combined stdout/stderr.

    Args:
        directory: Working directory for the command
        name: Executable name (resolved through PATH)
        args: Command arguments
        env: Extra environment variables, merged over the current environment
        cancel_event: When set, the running process is terminated

    Returns:
        Combined output of the command

    Raises:
        ExecutionError: The command could not start, exited non-zero or was cancelled
    """
    command = [name, *args]
    child_env = dict(os.environ)
    if env:
        child_env.update(env)

    logger.debug(f"Running '{' '.join(command)}' in {directory}")
    try:
        process = subprocess.Popen(
            command,
            cwd=directory,
            env=child_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            # Own process group; cancellation signals the whole group
            start_new_session=True,
        )
    except OSError as e:
        raise ExecutionError(f"Failed to start {name} in {directory}: {e}") from e

    while True:
        try:
            output, _ = process.communicate(timeout=POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if cancel_event is not None and cancel_event.is_set():
                output = _terminate(process)
                raise ExecutionError(
                    f"{name} cancelled in {directory}",
                    output=output,
                    returncode=process.returncode,
                    cancelled=True,
                )

    output = output or ""
    if process.returncode != 0:
        raise ExecutionError(
            f"{name} {' '.join(args[:1])} exited with code {process.returncode} in {directory}",
            output=output,
            returncode=process.returncode,
        )
    return output


def _signal_group(process: subprocess.Popen, sig: int) -> None:
    try:
        os.killpg(process.pid, sig)
    except ProcessLookupError:
        logger.debug(f"Process group {process.pid} already exited")


def _terminate(process: subprocess.Popen) -> str:
    """
    Terminate a process and everything it started, killing the group if it ignores SIGTERM.

    Returns whatever output was captured.
    """
    _signal_group(process, signal.SIGTERM)
    try:
        output, _ = process.communicate(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning(f"Process group {process.pid} ignored SIGTERM, killing it")
        _signal_group(process, signal.SIGKILL)
        output, _ = process.communicate()
    return output or ""
