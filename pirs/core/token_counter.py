"""
Token estimation for command output.

Converts character counts to an approximate token count.
"""

# Rough approximation, not tokenizer-exact
CHARS_PER_TOKEN = 4


def estimate_tokens(chars: int) -> int:
    """Estimate tokens for a given number of output characters.

    Uses ceil(chars / CHARS_PER_TOKEN) with integer arithmetic so the
    result is exact for any size of input.

    Args:
        chars: Number of output characters (must be >= 0)

    Returns:
        Estimated token count

    Raises:
        ValueError: If chars is negative
    """
    if chars < 0:
        raise ValueError("chars cannot be negative")
    return -(-chars // CHARS_PER_TOKEN)
