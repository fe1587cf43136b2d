"""
Command-line helpers shared by the scripts in actions/.
"""

import re
from typing import Any


_YEAR_RANGE = re.compile(r"^\s*(\d{4})\s*[-:]\s*(\d{4})\s*$")


def parse_year_tokens(tokens: list[str]) -> list[Any]:
    """
    Expand year arguments, allowing inclusive ranges like "2013-2015".

    Tokens that aren't ranges are passed through unchanged; coercion (and
    the warning for something like "DEC-2016") happens in the loaders.

    Raises:
        ValueError: If a range runs backwards (e.g., "2015-2013").

    Example:
        >>> parse_year_tokens(["2013-2015", "2017"])
        [2013, 2014, 2015, '2017']
    """
    years: list[Any] = []
    for token in tokens:
        match = _YEAR_RANGE.match(token)
        if match is None:
            years.append(token)
            continue

        start, end = int(match.group(1)), int(match.group(2))
        if start > end:
            raise ValueError(
                f"Invalid year range '{token}': start ({start}) must be <= end ({end})"
            )
        years.extend(range(start, end + 1))
    return years
