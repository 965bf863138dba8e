"""
Reading time estimation for item bodies.

Used to infer whether a reading event reached completion when the event
producer only reports time spent.
"""

import math
import re
from dataclasses import dataclass

BASE_WORDS_PER_MINUTE = 200
COMPLEX_WORDS_PER_MINUTE = 150
CODE_WORDS_PER_MINUTE = 100
FIRST_IMAGE_SECONDS = 12
NEXT_IMAGE_SECONDS = 8
READING_BUFFER = 1.1

_CODE_BLOCK = re.compile(r"<code[^>]*>[\s\S]*?</code>")
_TAG = re.compile(r"<[^>]+>")
_IMAGE = re.compile(r"!\[.*?\]|<img.*?>")
_COMPLEX_MARK = re.compile(r"[-/_]")


@dataclass
class ReadingTimeStats:
    """Estimated reading time of a body of text."""

    minutes: int
    words: int
    image_adjustment: float

    @property
    def seconds(self) -> int:
        return self.minutes * 60


def _words(text: str) -> list:
    return text.split()


def estimate_reading_time(body: str) -> ReadingTimeStats:
    """
    Estimate minutes needed to read a body of HTML/markdown text.

    Regular words read at 200 wpm, complex words (longer than 6 characters or
    containing -, / or _) at 150 wpm, words inside <code> blocks at 100 wpm.
    Images add 12 seconds for the first and 8 for each further one. The total
    gets a 10% buffer and is rounded up to whole minutes.
    """
    body = body or ""
    code_blocks = _CODE_BLOCK.findall(body)
    prose = _TAG.sub("", _CODE_BLOCK.sub("", body))

    prose_words = _words(prose)
    code_words = sum(len(_words(_TAG.sub("", block))) for block in code_blocks)
    complex_words = sum(1 for w in prose_words if len(w) > 6 or _COMPLEX_MARK.search(w))
    image_count = len(_IMAGE.findall(body))

    image_minutes = (FIRST_IMAGE_SECONDS + (image_count - 1) * NEXT_IMAGE_SECONDS) / 60 if image_count else 0.0
    total_minutes = (
        (len(prose_words) - complex_words) / BASE_WORDS_PER_MINUTE
        + complex_words / COMPLEX_WORDS_PER_MINUTE
        + code_words / CODE_WORDS_PER_MINUTE
        + image_minutes
    )
    return ReadingTimeStats(
        minutes=math.ceil(total_minutes * READING_BUFFER),
        words=len(prose_words) + code_words,
        image_adjustment=image_minutes,
    )


def is_read_to_completion(body: str, time_spent_seconds: float) -> bool:
    """True when time spent covers the estimated reading time of body."""
    stats = estimate_reading_time(body)
    return max(0.0, time_spent_seconds or 0.0) >= stats.seconds
