"""
Base command extraction.

Normalizes a raw command line into the invocation that actually runs,
and resolves the package name wrapped by runner tools like npx.
"""

import re
from typing import Optional

# Leading "cd <dir> &&" / "cd <dir>;" clauses, possibly chained
_CD_PREFIX = re.compile(r"^(?:cd\s+[^;&]+(?:;|&&?)\s*)+")

# Leading inline environment assignments like FOO=bar
_ENV_PREFIX = re.compile(r"^(?:\w+=\S+\s+)+")

# "@1.2.3", "@^4", "@>=2.0" style version suffixes
_VERSION_SUFFIX = re.compile(r"@[\d^~>=<.*]+$")


def extract_base_command(command: str) -> str:
    """Strip directory-change prefixes and env assignments from a command.

    Examples:
        "cd /repo && pytest -q"      -> "pytest -q"
        "FOO=1 BAR=2 npm test"       -> "npm test"

    Never raises; an empty or whitespace-only command yields "".
    """
    cmd = command.strip()
    cmd = _CD_PREFIX.sub("", cmd)
    cmd = _ENV_PREFIX.sub("", cmd)
    return cmd.strip()


def extract_runner_command(base: str, runner: str) -> Optional[str]:
    """Resolve the package or subcommand invoked through a runner.

    Args:
        base: Base command as returned by extract_base_command
        runner: Runner token, e.g. "npx"

    Returns:
        The package name with any version suffix removed
        ("@scope/tool@1.2.3" -> "@scope/tool"), or None if nothing
        follows the runner.
    """
    match = re.search(rf"{re.escape(runner)}\s+(?:--\s+)?([\w@/.:-]+)", base)
    if not match:
        return None
    return _VERSION_SUFFIX.sub("", match.group(1))
