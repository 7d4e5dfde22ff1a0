"""Remote execution via ``ssh <host> bash -s`` stdin piping.

Task bodies generate their scripts as Python strings and pipe them to
the target's shell. No files are copied to remote hosts. Targets that
resolve to the local machine run the same script through a local
``bash -s`` without any credential injection.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass

from fanrun.engine.types import SharedContext, Target

logger = logging.getLogger(__name__)


@dataclass
class RemoteResult:
    """Result of a remote script execution."""

    host: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def last_line(self) -> str:
        """Get the last non-empty line of stdout."""
        lines = [line for line in self.stdout.strip().splitlines() if line.strip()]
        return lines[-1] if lines else ""


def build_ssh_cmd(
        host: str,
        ssh_user: str | None = None,
        ssh_key: str | None = None,
        ssh_options: list[str] | tuple[str, ...] | None = None,
        connect_timeout: int = 10,
        port: int | None = None,
        jump_host: str | None = None,
) -> list[str]:
    """Build the base SSH command with standard options.

    Args:
        host: Remote hostname or IP address.
        ssh_user: Optional SSH username (prepended as user@host).
        ssh_key: Optional path to SSH private key file.
        ssh_options: Additional SSH command-line options.
        connect_timeout: SSH connection timeout in seconds.
        port: Optional non-default SSH port.
        jump_host: Optional host to route the session through (``-J``).

    Returns:
        List of command parts suitable for subprocess.
    """
    cmd = ["ssh", "-o", "BatchMode=yes", "-o", f"ConnectTimeout={connect_timeout}"]
    if ssh_key:
        cmd.extend(["-i", ssh_key])
    if port:
        cmd.extend(["-p", str(port)])
    if jump_host:
        cmd.extend(["-J", jump_host])
    if ssh_options:
        cmd.extend(ssh_options)
    target = f"{ssh_user}@{host}" if ssh_user else host
    cmd.append(target)
    return cmd


def _run(cmd: list[str], host: str, label: str, script: str | None, timeout: float | None) -> RemoteResult:
    t0 = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            input=script,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - t0
        logger.debug("  %s <- %s TIMEOUT after %.0fs", label, host, elapsed)
        return RemoteResult(host=host, returncode=-1, stdout="", stderr="Execution timed out")
    except OSError as e:
        elapsed = time.monotonic() - t0
        logger.debug("  %s <- %s ERROR (%.1fs): %s", label, host, elapsed, e)
        return RemoteResult(host=host, returncode=-1, stdout="", stderr=str(e))

    elapsed = time.monotonic() - t0
    result = RemoteResult(host=host, returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    if result.success:
        logger.debug("  %s <- %s OK (%.1fs)", label, host, elapsed)
    else:
        logger.debug("  %s <- %s rc=%d (%.1fs): %s",
                     label, host, proc.returncode, elapsed, proc.stderr.strip()[:200])
    if proc.stdout.strip():
        logger.debug("%s stdout on %s:\n%s", label, host, proc.stdout.strip())
    return result


def run_remote_script(
        host: str,
        script: str,
        ssh_user: str | None = None,
        ssh_key: str | None = None,
        ssh_options: list[str] | tuple[str, ...] | None = None,
        connect_timeout: int = 10,
        timeout: float | None = None,
        port: int | None = None,
        jump_host: str | None = None,
        dry_run: bool = False,
) -> RemoteResult:
    """Execute a script on a remote host via stdin piping.

    Args:
        host: Remote hostname or IP.
        script: Bash script content to execute.
        ssh_user: Optional SSH username.
        ssh_key: Optional path to SSH private key.
        ssh_options: Additional SSH options.
        connect_timeout: SSH connection timeout in seconds.
        timeout: Overall execution timeout in seconds.
        port: Optional non-default SSH port.
        jump_host: Optional jump host.
        dry_run: If True, log the script but don't execute.

    Returns:
        RemoteResult with returncode, stdout, stderr.
    """
    if dry_run:
        logger.info("[dry-run] Would execute on %s (%d lines, %d bytes)",
                    host, script.count("\n"), len(script))
        return RemoteResult(host=host, returncode=0, stdout="[dry-run]", stderr="")

    cmd = build_ssh_cmd(host, ssh_user, ssh_key, ssh_options, connect_timeout, port, jump_host)
    cmd.extend(["bash", "-s"])

    logger.debug("  SSH script -> %s (%d bytes)%s",
                 host, len(script), f" [timeout={timeout}s]" if timeout else "")
    logger.debug("SSH command: %s", " ".join(cmd))
    return _run(cmd, host, "SSH script", script, timeout)


def run_local_script(
        script: str,
        host: str = "localhost",
        timeout: float | None = None,
        dry_run: bool = False,
) -> RemoteResult:
    """Execute a script with the local ``bash -s``, same contract as the SSH path."""
    if dry_run:
        logger.info("[dry-run] Would execute locally (%d lines, %d bytes)",
                    script.count("\n"), len(script))
        return RemoteResult(host=host, returncode=0, stdout="[dry-run]", stderr="")

    logger.debug("  Local script -> %s (%d bytes)", host, len(script))
    return _run(["bash", "-s"], host, "Local script", script, timeout)


def run_on_target(target: Target, script: str, context: SharedContext) -> RemoteResult:
    """Run *script* on *target* using the batch context.

    Local targets run in-process through ``bash -s`` with the caller's
    identity; everything else goes over SSH with the context credential,
    the target's port and jump host, and the batch timeout.
    """
    if context.is_local(target) and not target.port and not target.via:
        return run_local_script(script, host=target.label, timeout=context.timeout,
                                dry_run=context.dry_run)

    credential = context.credential
    ssh_user = ssh_key = None
    if not credential.is_empty:
        ssh_user, ssh_key = credential.user, credential.key_file
        logger.debug("  %s: connecting as %s", target, ssh_user or "<ssh default user>")
    return run_remote_script(
        target.host,
        script,
        ssh_user=ssh_user,
        ssh_key=ssh_key,
        ssh_options=context.ssh_options,
        timeout=context.timeout,
        port=target.port,
        jump_host=target.via,
        dry_run=context.dry_run,
    )
