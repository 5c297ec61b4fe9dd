"""Find a top-level window by title."""

from .windows import get_window_list

# GetWindowText reads into a 256 code unit buffer (terminator included)
MAX_TITLE_LENGTH = 255


def title_matches(title: str, query: str, exact_match: bool) -> bool:
    """Case-insensitive title comparison.

    Titles longer than MAX_TITLE_LENGTH are truncated before matching.
    """
    title = title[:MAX_TITLE_LENGTH].lower()
    query = query.lower()
    if exact_match:
        return title == query
    return query in title


def find_window(title_query: str, exact_match: bool = False, windows: list[dict] | None = None) -> dict | None:
    """Find the first window whose title matches the query.

    Args:
        title_query: Title (exact) or title substring to look for.
        exact_match: Require case-insensitive equality instead of a
            case-insensitive substring match.
        windows: Window dictionaries to search, in enumeration order.
            Defaults to the current platform window list.

    Returns:
        Window dictionary of the first match, or None if nothing matches or
        the query is empty.
    """
    if not title_query:
        return None

    if windows is None:
        windows = get_window_list()

    for window in windows:
        title = window.get("title")
        if title and title_matches(title, title_query, exact_match):
            return window

    return None
