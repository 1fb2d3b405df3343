"""
Human-readable durations and memory sizes for run reports.
"""


def elapsedTime(t):
    """
    Format a duration in seconds with the largest sensible unit.

    Example:
        elapsedTime(0.05) -> "   50 ms"
        elapsedTime(125.5) -> "2.092 m"
    """
    if t < 1.0:
        return "%5.4g ms" % (t * 1000.0)
    elif t < 60.0:
        return "%5.4g s" % (t)
    elif t < 3600.0:
        return "%5.4g m" % (t / 60.0)
    else:
        return "%5.4g h" % (t / 3600.0)


def memorySize(sz):
    """Format a byte count as B, KB, MB, GB or TB (powers of 1024)."""
    fsz = float(sz)
    for unit, scale in (("B", 1), ("KB", 1024), ("MB", 1024**2), ("GB", 1024**3)):
        if sz < scale * 1024:
            if unit == "B":
                return "%5g B" % fsz
            return "%5.4g %s" % (fsz / scale, unit)
    return "%5.4g TB" % (fsz / (1024**4))


def plural(count, noun):
    return "%d %s%s" % (count, noun, "" if count == 1 else "s")
