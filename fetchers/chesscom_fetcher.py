# chesscom_fetcher.py

import aiohttp
from typing import Iterable, List, Tuple

BASE_URL = "https://api.chess.com/pub/player"
REQUEST_TIMEOUT = 10  # seconds


class ChessCom_Fetcher:
    """
    Fetches game data from the Chess.com public API.
    """

    def __init__(self, user_agent: str = "chess_move_analyser/1.0"):
        self.headers = {"User-Agent": user_agent}
        self.timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)

    async def fetch_games_by_month(self, username: str, year: int, month: int) -> dict:
        """
        Fetch the games JSON for one month. A 404 means no games that month.
        """
        url = f"{BASE_URL}/{username}/games/{year:04d}/{month:02d}"
        async with aiohttp.ClientSession(headers=self.headers, timeout=self.timeout) as session:
            async with session.get(url) as resp:
                if resp.status == 404:
                    return {"games": []}
                resp.raise_for_status()
                return await resp.json()

    async def fetch_games_in_range(self, username: str,
                                   months: Iterable[Tuple[int, int]]) -> List[dict]:
        """
        Fetch raw game dicts for each (year, month), oldest first.
        Months that fail to download are reported and skipped.
        """
        games = []
        for year, month in months:
            print(f"... checking {month:02d}/{year}")
            try:
                month_data = await self.fetch_games_by_month(username, year, month)
            except Exception as e:
                print(f"  Could not fetch games for {month:02d}/{year}: {e}")
                continue
            games.extend(month_data.get("games", []))
        return games
