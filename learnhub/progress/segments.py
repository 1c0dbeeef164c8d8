"""Lesson script segmentation.

A lesson script is markdown-like text; every ``## `` at the start of a
line opens a new segment. Segments are the unit of resume position, so
the count here must be the same one stored at completion time.
"""

import re


SEGMENT_MARKER = re.compile(r"^## ", re.MULTILINE)


def split_segments(script: str) -> list[str]:
    """Split a script on level-2 heading markers.

    The piece before the first marker counts as a segment only when there
    is one, i.e. a script starting with a heading has no preamble segment.
    """
    pieces = SEGMENT_MARKER.split(script or "")
    if len(pieces) > 1 and pieces[0] == "":
        return pieces[1:]
    return pieces


def count_segments(script: str) -> int:
    """Number of segments in a script (an empty script has one)."""
    return len(split_segments(script))
