"""
Plain-text rendering of fuzzy matches.

Examples:
    >>> for match in fuzzy_search(genome, t7tag, amount=3, formatter=bracket_formatter):
    ...     print(format_match(match))
       [1 ... ATGGCTAGCATGACTGGTGGACAGCAAATGGGT ... 33)
    [1509 ... ATGGCTAGCATGACTGGTGGACAGCAAATGGGT ... 1541)
                          Score 33
"""
from fuzzyseq.containers.match import Item, Match


# Functions ------------------------------------------------------------------------------------------------------------
def bracket_formatter(item: Item, width: int = 5) -> str:
    """
    Renders an item as ``[start ... SEQUENCE ... end)`` with the positions padded to a fixed width.

    Args:
        item: The item to render.
        width: Minimum width of the bracketed start (right-aligned) and end (left-aligned) fields.

    Returns:
        The rendered string.

    Examples:
        >>> bracket_formatter(Item(Sequence.from_text('ACGT'), 1, 4))
        '   [1 ... ACGT ... 4)   '
    """
    return f"{'[' + str(item.start):>{width}} ... {item.to_string()} ... {str(item.end) + ')':<{width}}"


def center(text: str, width: int) -> str:
    """Left-pads ``text`` so that it sits in the middle of a line ``width`` characters wide (never truncates)."""
    return ' ' * max(width // 2 - len(text) // 2, 0) + text


def format_match(match: Match) -> str:
    """Renders a match as three lines: the needle, the haystack and the score centred under the haystack."""
    haystack = match.format_haystack()
    return '\n'.join((match.format_needle(), haystack, center(match.format_score(), len(haystack))))
