"""
Command classification.

Maps a raw command string to a single category label using runner
resolution followed by an ordered substring pattern table.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .extractor import extract_base_command, extract_runner_command

OTHER_CATEGORY = "other"

# Checked in this order; the first runner the base command starts with wins
DEFAULT_RUNNERS: Tuple[str, ...] = ("npx", "bunx", "uvx")

# Ordered (category, patterns) pairs. Entry order and pattern order both
# decide ties, so specific entries must precede the generic ones.
COMMAND_GROUPS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("pytest", ("pytest", "python3 -m pytest", "python -m pytest", "uv run pytest", "uv run python -m pytest")),
    ("vitest", ("vitest",)),
    ("jest", ("jest",)),
    ("tsc", ("tsc",)),
    ("eslint", ("eslint",)),
    ("npm install", ("npm install", "npm ci", "pnpm install", "pnpm i", "bun install", "bun add")),
    ("npm run", ("npm run", "pnpm run", "pnpm exec", "bun run")),
    ("npm", ("npm ", "pnpm ", "bun ")),
    ("pip", ("pip install", "pip3 install", "uv add", "uv pip install", "uv pip compile", "uv pip sync")),
    ("uv", ("uv run", "uv sync", "uv lock", "uv venv", "uv init", "uv remove", "uv tree", "uv ")),
    ("git", ("git ",)),
    ("grep/rg", ("grep ", "rg ")),
    ("find", ("find ",)),
    ("cat/head/tail", ("cat ", "head ", "tail ")),
    ("ls", ("ls ",)),
    ("file ops", ("cp ", "mv ", "mkdir ", "rm ", "rmdir ", "chmod ", "chown ", "ln ", "touch ")),
    ("docker", ("docker ",)),
    ("curl/wget", ("curl ", "wget ")),
    ("cargo test", ("cargo test",)),
    ("cargo fmt", ("cargo fmt",)),
    ("cargo clippy", ("cargo clippy",)),
    ("cargo", ("cargo ",)),
    ("go", ("go build", "go test", "go run")),
    ("make", ("make ",)),
)


@dataclass(frozen=True)
class CommandClassifier:
    """Ordered rule table for command classification.

    Matching is plain substring containment against the base command,
    so a pattern like "go build" matches anywhere in the command, not
    only as the leading token.
    """
    groups: Tuple[Tuple[str, Tuple[str, ...]], ...] = COMMAND_GROUPS
    runners: Tuple[str, ...] = DEFAULT_RUNNERS

    def __post_init__(self):
        """Validate the rule table."""
        for name, patterns in self.groups:
            if not name:
                raise ValueError("group name cannot be empty")
            if not patterns:
                raise ValueError(f"group '{name}' must have at least one pattern")
            if any(not pattern for pattern in patterns):
                raise ValueError(f"group '{name}' contains an empty pattern")
        if any(not runner or " " in runner for runner in self.runners):
            raise ValueError("runner names must be non-empty single tokens")

    def classify(self, command: str) -> str:
        """Return the category for a command; "other" if nothing matches."""
        base = extract_base_command(command)

        for runner in self.runners:
            if base.startswith(f"{runner} "):
                sub = extract_runner_command(base, runner)
                if sub:
                    return f"{runner} {sub}"
                return runner

        for name, patterns in self.groups:
            for pattern in patterns:
                if pattern in base:
                    return name
        return OTHER_CATEGORY


DEFAULT_CLASSIFIER = CommandClassifier()


def classify_command(command: str, classifier: Optional[CommandClassifier] = None) -> str:
    """Classify a command with the given classifier (default table if None)."""
    return (classifier or DEFAULT_CLASSIFIER).classify(command)
