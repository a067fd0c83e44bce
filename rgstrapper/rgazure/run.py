import json
import subprocess
from typing import Any, Dict, List, Optional

from loguru import logger as log

from rgstrapper.util.cmd import CMD


class AzCliError(RuntimeError):
    """An 'az' invocation exited non-zero or could not be started."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        detail = self.stderr or f"exit status {returncode}"
        super().__init__(f"Azure CLI failed (code {returncode}): {' '.join(cmd)} ↳ {detail}")


def run_az(
        cmd: List[str],
        *,
        ignore_errors: Optional[Dict[str, List[str]]] = None,
        json_override: Optional[bool] = None
) -> Any:
    """
    Run 'az ...' once, parse JSON output, or raise AzCliError.

    If you pass `ignore_errors={"someKey": ["substring1", "substring2"]}`,
    then any failure whose stderr contains one of those substrings
    (case-insensitive) returns None instead of raising.

    Logic:
        1. Resolve the 'az' executable (PATH, then Windows install locations).
        2. Decide whether JSON is expected and append '--output json'.
        3. Execute through CMD.run. No retries.
        4. On success, parse JSON (empty stdout -> None).
        5. On failure, apply ignore_errors or raise AzCliError.
    """
    resolved = CMD.which(cmd[0])
    if resolved is None:
        raise AzCliError(cmd, 127, f"'{cmd[0]}' not found on PATH")
    resolved_cmd = [resolved] + cmd[1:]

    if json_override is not None:
        expect_json = json_override
    else:
        expect_json = (
            "--output" not in cmd
            and "-o" not in cmd
        )
    full_cmd = resolved_cmd + (["--output", "json"] if expect_json else [])
    log.debug("[run_az] ▶ Running: {}", " ".join(cmd))

    try:
        completed = CMD.run(full_cmd, text=True, check=True)
    except subprocess.CalledProcessError as ex:
        stderr = ex.stderr or ""
        lower_err = stderr.lower()
        if ignore_errors:
            for key, substrings in ignore_errors.items():
                for substr in substrings:
                    if substr.lower() in lower_err:
                        log.debug("[run_az] Ignoring '{}' error for '{}'. Continuing.", substr, key)
                        return None
        raise AzCliError(cmd, ex.returncode, stderr) from ex
    except OSError as ex:
        raise AzCliError(cmd, 126, str(ex)) from ex

    raw = (completed.stdout or "").strip()
    if not raw:
        return None
    if not expect_json:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as jde:
        raise AzCliError(cmd, 0, f"Expected JSON but got invalid output: {jde}") from jde
