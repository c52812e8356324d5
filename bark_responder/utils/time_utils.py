"""Duration formatting for reports and the CLI"""


def format_duration(seconds: int) -> str:
    """
    Compact duration for report listings.

    Args:
        seconds: Duration in whole seconds

    Returns:
        "1h 5m", "3m 20s" or "45s"
    """
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
