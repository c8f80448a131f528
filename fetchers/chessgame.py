# chessgame.py

import datetime


class ChessGame:
    def __init__(self, white, black, end_time, white_result, black_result,
                 white_rating=0, black_rating=0, my_color=None, pgn=None,
                 fen="", time_class=None, time_control="", rules="chess",
                 rated=False, game_url=""):
        self.white = white
        self.black = black
        self.end_time = end_time  # datetime object
        self.white_result = white_result
        self.black_result = black_result
        self.white_rating = white_rating
        self.black_rating = black_rating
        self.my_color = my_color
        self.pgn = pgn
        self.fen = fen                # final position
        self.time_class = time_class  # "bullet", "blitz", "rapid", "daily"
        self.time_control = time_control
        self.rules = rules
        self.rated = rated
        self.game_url = game_url      # Chess.com game URL (unique ID)

    @classmethod
    def from_json(cls, data, my_username=None):
        """Build a ChessGame from a Chess.com archive game dict.

        When my_username is given, returns None if that user did not play.
        """
        white_info = data.get('white', {})
        black_info = data.get('black', {})

        my_color = None
        if my_username is not None:
            my_username_lower = my_username.lower()
            if my_username_lower == white_info.get('username', '').lower():
                my_color = 'white'
            elif my_username_lower == black_info.get('username', '').lower():
                my_color = 'black'
            else:
                return None

        # Parse end_time
        end_time_unix = data.get('end_time')
        end_time = datetime.datetime.fromtimestamp(end_time_unix) if end_time_unix else datetime.datetime.now()

        return cls(
            white=white_info.get('username', ''),
            black=black_info.get('username', ''),
            end_time=end_time,
            white_result=white_info.get('result', ''),
            black_result=black_info.get('result', ''),
            white_rating=white_info.get('rating', 0),
            black_rating=black_info.get('rating', 0),
            my_color=my_color,
            pgn=data.get('pgn'),
            fen=data.get('fen', ''),
            time_class=data.get('time_class'),
            time_control=data.get('time_control', ''),
            rules=data.get('rules', 'chess'),
            rated=data.get('rated', False),
            game_url=data.get('url', ''),
        )

    def summary_line(self, index):
        """One-line listing, e.g. `[3] alice vs bob (blitz) - Played on 2025-06-15`."""
        return (f"[{index}] {self.white} vs {self.black} ({self.time_class}) - "
                f"Played on {self.end_time.strftime('%Y-%m-%d')}")

    def details(self, index):
        """Multi-line details block with headers, results and PGN."""
        return "\n".join([
            f"--- Game Details ({index}) ---",
            f"URL: {self.game_url}",
            f"Date: {self.end_time.strftime('%Y-%m-%d %H:%M:%S')}",
            f"Time Class: {self.time_class} ({self.time_control})",
            f"Rules: {self.rules}",
            f"Rated: {self.rated}",
            f"White: {self.white} ({self.white_rating}) - Result: {self.white_result}",
            f"Black: {self.black} ({self.black_rating}) - Result: {self.black_result}",
            f"Final Position (FEN): {self.fen}",
            "--- PGN ---",
            self.pgn or "",
            "------------------------",
        ])
