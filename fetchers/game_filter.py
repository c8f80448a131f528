# fetchers/game_filter.py
from datetime import date, datetime
from typing import Iterator, List, Optional, Set, Tuple
from chessgame import ChessGame


def parse_month(text: str) -> date:
    """Parse a `YYYY-MM` string into the first day of that month."""
    try:
        return datetime.strptime(text + "-01", "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid month {text!r}. Please use YYYY-MM format.") from None


def iter_months(start: date, end: date) -> Iterator[Tuple[int, int]]:
    """Yield (year, month) pairs from start to end, both inclusive."""
    if start > end:
        raise ValueError("Start date cannot be after the end date.")

    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def filter_games_by_time_class(
    games: List[ChessGame],
    include: Optional[Set[str]] = None,
    exclude: Optional[Set[str]] = None,
) -> List[ChessGame]:
    """Filter games by time class (bullet, blitz, rapid, daily).

    Args:
        games: List of ChessGame objects.
        include: If set, only keep games whose time_class is in this set.
        exclude: If set, remove games whose time_class is in this set.
        If both are None, returns all games. include takes priority over exclude.
    """
    if include is not None:
        return [g for g in games if g.time_class in include]
    if exclude is not None:
        return [g for g in games if g.time_class not in exclude]
    return games
