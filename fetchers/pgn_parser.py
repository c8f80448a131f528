# pgn_parser.py

import io
import chess
import chess.pgn


class PGNParseError(ValueError):
    """Raised when a PGN string holds no playable game."""


class IllegalMoveError(ValueError):
    """Raised when a move cannot be played in the current replay position."""

    def __init__(self, move, ply, fen):
        self.move = move
        self.ply = ply
        self.fen = fen
        super().__init__(f"Illegal move {move} at ply {ply} in position {fen}")


class PGNParser:
    """Parses PGN strings into move lists and board positions."""

    @staticmethod
    def parse_moves(pgn_string):
        """Parse a PGN string and return its mainline as a list of chess.Move.

        Raises PGNParseError if the PGN is empty, has no moves, or contains
        a move python-chess could not play.
        """
        if not pgn_string or not pgn_string.strip():
            raise PGNParseError("PGN is empty")

        game = chess.pgn.read_game(io.StringIO(pgn_string))
        if game is None:
            raise PGNParseError("No game found in PGN")
        if game.errors:
            raise PGNParseError(f"Invalid PGN: {game.errors[0]}")

        moves = list(game.mainline_moves())
        if not moves:
            raise PGNParseError("PGN contains no moves")
        return moves


class BoardReplay:
    """Replays a game from the standard starting position, one ply at a time."""

    def __init__(self):
        self.board = chess.Board()

    @property
    def ply(self):
        """Number of plies applied so far."""
        return len(self.board.move_stack)

    @property
    def turn(self):
        """Side to move as "white" or "black"."""
        return "white" if self.board.turn == chess.WHITE else "black"

    def fen(self):
        """FEN of the current position."""
        return self.board.fen()

    def check_move(self, move):
        if not move or not self.board.is_legal(move):
            raise IllegalMoveError(move, self.ply, self.board.fen())

    def san(self, move):
        """Standard algebraic notation for a move in the current position."""
        self.check_move(move)
        return self.board.san(move)

    def apply_move(self, move):
        """Play a legal move, advancing the replay by one ply."""
        self.check_move(move)
        self.board.push(move)
