# cmd.py

import platform
import shlex
import subprocess
from pathlib import Path
from shutil import which as std_which
from typing import Union, List, Optional

from loguru import logger as log

AZ_FALLBACK_PATHS = [
    r"C:\Program Files (x86)\Microsoft SDKs\Azure\CLI2\wbin\az.cmd",
    r"C:\Program Files\Microsoft SDKs\Azure\CLI2\wbin\az.cmd",
]


class CMD:
    @staticmethod
    def run(
            cmd: Union[str, List[str]],
            *,
            check: bool = True,
            text: bool = True,
    ) -> subprocess.CompletedProcess:
        """
        Runs a subprocess command without a shell, capturing stdout and stderr.

        On Windows, a list whose first element is the full path to a .cmd/.bat
        file (e.g. "C:\\Program Files\\...\\az.cmd") is handled by subprocess.run
        directly, spaces included.

        - If `cmd` is a string, it is split with shlex.
        - CalledProcessError is logged and re-raised when check=True.
        """
        if not isinstance(cmd, (str, list)):
            raise TypeError(f"[CMD.run] 'cmd' must be a str or list, got {type(cmd).__name__}")

        if isinstance(cmd, str):
            cmd = shlex.split(cmd)

        log.debug("[CMD.run] Running command: {!r}", cmd)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                check=check,
                text=text,
            )
        except subprocess.CalledProcessError as exc:
            stderr_text = exc.stderr if exc.stderr else ""
            log.debug(
                "[CMD.run] Command failed (returncode={}). cmd={!r}{}",
                exc.returncode,
                cmd,
                f", stderr={stderr_text.strip()!r}" if stderr_text else "",
            )
            raise

        if result.returncode == 0:
            log.debug("[CMD.run] Command succeeded (returncode=0)")
        else:
            log.warning("[CMD.run] Command completed with non-zero exit (returncode={})", result.returncode)
        return result

    @staticmethod
    def which(binary: str) -> Optional[str]:
        """
        Return the full unquoted path to a binary if found in PATH,
        or check the common Azure CLI install locations on Windows.
        """
        path = std_which(binary)
        if path:
            return path

        if binary.lower() == "az" and platform.system() == "Windows":
            for fb in AZ_FALLBACK_PATHS:
                fb_path = Path(fb)
                if fb_path.exists():
                    log.debug("[CMD.which] Fallback found for {}: {}", binary, fb_path)
                    return str(fb_path)

        return None
