from __future__ import annotations

"""Subprocess helpers with timeouts and process-group cleanup.

- No shell=True (hooks call the configured shell explicitly)
- Captured runs kill the whole process group on timeout so that helm/git
  children never outlive a cancelled fetch
"""

import logging
import os
import shlex
import signal
import subprocess
from pathlib import Path
from time import perf_counter
from typing import Any, List, MutableMapping, Optional, Sequence

logger = logging.getLogger(__name__)


def _flatten_cmd(cmd: Any) -> List[str]:
    if isinstance(cmd, (list, tuple)):
        return [str(p) for p in cmd]
    return shlex.split(str(cmd))


def _popen_process_group_kwargs() -> dict[str, Any]:
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def _terminate_process_group(proc: subprocess.Popen[Any]) -> None:
    if proc.poll() is not None:
        return
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGTERM)
        except OSError:
            proc.terminate()
        try:
            proc.wait(timeout=0.2)
        except subprocess.TimeoutExpired:
            pass
        if proc.poll() is None:
            try:
                os.killpg(proc.pid, signal.SIGKILL)
            except OSError:
                proc.kill()
        try:
            proc.wait(timeout=0.2)
        except subprocess.TimeoutExpired:
            pass
        return

    proc.kill()
    try:
        proc.wait(timeout=0.2)
    except subprocess.TimeoutExpired:
        pass


def _run_capture_output_nohang(
    argv: List[str],
    *,
    timeout: float,
    cwd: Optional[str],
    env: Optional[MutableMapping[str, str]],
    text: bool,
    check: bool,
    input: Any,
) -> subprocess.CompletedProcess:
    proc = subprocess.Popen(
        argv,
        cwd=cwd,
        env=env,
        stdin=subprocess.PIPE if input is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=text,
        **_popen_process_group_kwargs(),
    )
    try:
        stdout, stderr = proc.communicate(input=input, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        _terminate_process_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=0.2)
        except (subprocess.TimeoutExpired, ValueError, OSError):
            stdout = getattr(exc, "output", None)
            stderr = getattr(exc, "stderr", None)
        raise subprocess.TimeoutExpired(argv, timeout, output=stdout, stderr=stderr) from None

    completed = subprocess.CompletedProcess(
        argv,
        proc.returncode if proc.returncode is not None else 0,
        stdout=stdout,
        stderr=stderr,
    )
    if check and completed.returncode != 0:
        raise subprocess.CalledProcessError(
            completed.returncode,
            argv,
            output=stdout,
            stderr=stderr,
        )
    return completed


def _to_cwd(cwd: Optional[Path | str]) -> Optional[str]:
    """Convert Path or str cwd to str for subprocess."""
    if cwd is None:
        return None
    return str(cwd)


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path | str] = None,
    env: Optional[MutableMapping[str, str]] = None,
    timeout: Optional[float] = None,
    capture_output: bool = False,
    text: bool = True,
    check: bool = False,
    input: Any = None,
) -> subprocess.CompletedProcess:
    """
    Thin wrapper around subprocess with safe defaults.

    Args:
        cmd: Command sequence to execute
        cwd: Working directory (Path or str)
        env: Environment variables
        timeout: Timeout in seconds (None waits forever)
        capture_output: Capture stdout/stderr
        text: Return output as text instead of bytes
        check: Raise CalledProcessError on non-zero exit
        input: Data sent to stdin

    Returns:
        CompletedProcess

    Raises:
        subprocess.TimeoutExpired: When the command exceeds ``timeout``.
        subprocess.CalledProcessError: When ``check`` is set and the exit code is non-zero.
    """
    argv = _flatten_cmd(cmd)
    start = perf_counter()
    try:
        if capture_output and timeout is not None:
            return _run_capture_output_nohang(
                argv,
                timeout=float(timeout),
                cwd=_to_cwd(cwd),
                env=env,
                text=text,
                check=check,
                input=input,
            )
        return subprocess.run(
            argv,
            cwd=_to_cwd(cwd),
            env=env,
            timeout=timeout,
            capture_output=capture_output,
            text=text,
            check=check,
            input=input,
        )
    finally:
        logger.debug(
            "ran %s in %.1fms (cwd=%s)",
            argv[0] if argv else "<empty>",
            (perf_counter() - start) * 1000.0,
            cwd,
        )


__all__ = ["run_command"]
