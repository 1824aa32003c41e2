"""Lifecycle hook execution.

Hook commands are Jinja2 templates rendered against the component being
processed and executed with the configured shell in its working directory.
"""
from __future__ import annotations

import logging
import subprocess
from typing import Any, Dict

from jinja2 import Environment, StrictUndefined, TemplateError

from manifold.core.exceptions import HookError
from manifold.core.utils.redaction import redact_text_credentials
from manifold.core.utils.subprocess import run_command

from .model import Component

logger = logging.getLogger(__name__)

_JINJA = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def hook_context(component: Component, hook: str) -> Dict[str, Any]:
    return {
        "name": component.name,
        "logical_path": component.logical_path,
        "physical_path": str(component.physical_path or ""),
        "hook": hook,
    }


def render_command(command: str, context: Dict[str, Any]) -> str:
    return _JINJA.from_string(command).render(**context)


def run_hook(component: Component, hook: str, *, shell: str = "sh", timeout: float = 600.0) -> int:
    """Run every command of ``hook`` for ``component`` in order.

    Returns:
        Number of commands executed.

    Raises:
        HookError: on a template error, a non-zero exit, or a timeout.
    """
    commands = [c for c in component.hooks.commands(hook) if c and c.strip()]
    if not commands:
        return 0

    context = hook_context(component, hook)
    cwd = component.working_directory()
    for raw in commands:
        try:
            command = render_command(raw, context)
        except TemplateError as exc:
            raise HookError(
                f'rendering "{hook}" hook command {raw!r}: {exc}',
                hook=hook,
                command=raw,
                component=component.logical_path,
            ) from exc

        logger.debug("running %s hook in %s: %s", hook, cwd, command)
        try:
            result = run_command([shell, "-c", command], cwd=cwd, timeout=timeout, capture_output=True)
        except subprocess.TimeoutExpired:
            raise HookError(
                f'"{hook}" hook timed out after {timeout:g}s: {command}',
                hook=hook,
                command=command,
                component=component.logical_path,
            ) from None
        except OSError as exc:
            raise HookError(
                f'"{hook}" hook could not start: {exc}',
                hook=hook,
                command=command,
                component=component.logical_path,
            ) from exc

        if result.stdout:
            logger.debug("%s hook stdout: %s", hook, result.stdout.rstrip())
        if result.returncode != 0:
            stderr = redact_text_credentials((result.stderr or "").strip())
            raise HookError(
                f'"{hook}" hook exited {result.returncode}: {command}' + (f": {stderr}" if stderr else ""),
                hook=hook,
                command=command,
                context={"returncode": result.returncode},
                component=component.logical_path,
            )
        if result.stderr:
            logger.debug("%s hook stderr: %s", hook, result.stderr.rstrip())
    return len(commands)


__all__ = ["hook_context", "render_command", "run_hook"]
