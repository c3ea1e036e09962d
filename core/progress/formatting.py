"""Human-readable durations."""


def format_time(seconds: float | None) -> str:
    """Format seconds as MM:SS, or HH:MM:SS from one hour up."""
    if not seconds or seconds < 0:
        return "00:00"

    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_time_readable(seconds: float | None) -> str:
    """Format seconds as e.g. "2h 30min", "45min" or "0min"."""
    if not seconds or seconds < 0:
        return "0min"

    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}min")

    return " ".join(parts) if parts else "0min"
