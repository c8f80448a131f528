import datetime
from collections import deque

from chessgame import ChessGame
from uci_session import EngineCommError, EngineTimeout, SearchResult

EOF_MARK = None  # put in a script to close the fake engine's output

STANDARD_SCRIPT = {
    "uci": ["id name FakeEngine", "id author tests", "option name Hash type spin", "uciok"],
    "isready": ["readyok"],
    "go": ["info depth 10 score cp 35 nodes 1000 pv e2e4", "bestmove e2e4 ponder e7e5"],
}


class FakeEngineProcess:
    """Scripted stand-in for EngineProcess.

    `script` maps the first word of a command to the lines the engine
    answers with. EOF_MARK in a reply closes the output stream.
    """

    def __init__(self, script=None, fail_start=None, fail_writes=False):
        self.script = dict(STANDARD_SCRIPT if script is None else script)
        self.fail_start = fail_start
        self.fail_writes = fail_writes
        self.sent = []
        self.started = False
        self.closed = 0
        self.killed = False
        self._pending = deque()
        self._eof = False

    def __call__(self, engine_path):
        self.engine_path = engine_path
        return self

    def start(self):
        if self.fail_start:
            raise self.fail_start
        self.started = True

    def write_line(self, text):
        if self.fail_writes or self.closed:
            raise EngineCommError(f"Failed to send {text!r} to engine")
        self.sent.append(text)
        reply = self.script.get(text.split()[0], [])
        self._pending.extend(reply() if callable(reply) else reply)

    def read_line(self, timeout=None):
        if self._eof or self.closed:
            return None
        if not self._pending:
            if timeout is not None:
                raise EngineTimeout("no output")
            return None
        line = self._pending.popleft()
        if line is EOF_MARK:
            self._eof = True
        return line

    def kill(self):
        self.killed = True
        self.close()

    def close(self, timeout=None):
        self.closed += 1


class FakeSession:
    """Session stub returning a fixed score, recording every FEN it is given."""

    def __init__(self, score_cp=35, fail_on_call=None):
        self.score_cp = score_cp
        self.fail_on_call = fail_on_call
        self.fens = []

    def evaluate_position(self, fen, think_time_ms):
        self.fens.append(fen)
        if self.fail_on_call is not None and len(self.fens) == self.fail_on_call:
            raise EngineCommError("Engine closed its output before 'bestmove'")
        return SearchResult(score_cp=self.score_cp)


def make_game_json(white_user="PlayerA", black_user="PlayerB",
                   white_result="win", black_result="lose",
                   end_time=None, pgn=None, time_class=None,
                   game_url="", white_rating=1500, black_rating=1480):
    """Build a raw Chess.com game JSON dict for testing."""
    if end_time is None:
        end_time = int(datetime.datetime(2025, 6, 15, 12, 0, 0).timestamp())
    data = {
        "white": {"username": white_user, "result": white_result, "rating": white_rating},
        "black": {"username": black_user, "result": black_result, "rating": black_rating},
        "end_time": end_time,
    }
    if pgn is not None:
        data["pgn"] = pgn
    if time_class is not None:
        data["time_class"] = time_class
    if game_url:
        data["url"] = game_url
    return data


def make_archive_response(games_data):
    """Build a Chess.com monthly archive API response."""
    return {"games": games_data}


def make_chess_game(my_color="white", white_result="win", black_result="lose",
                    end_time=None, pgn=None, time_class="blitz", game_url=""):
    """Build a ChessGame object directly for analyser/filter tests."""
    if end_time is None:
        end_time = datetime.datetime(2025, 6, 15, 12, 0, 0)
    return ChessGame(
        white="PlayerA",
        black="PlayerB",
        end_time=end_time,
        white_result=white_result,
        black_result=black_result,
        my_color=my_color,
        pgn=pgn,
        time_class=time_class,
        game_url=game_url,
    )
