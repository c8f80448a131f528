# game_analyser.py

from dataclasses import dataclass
from typing import Callable, List, Optional

import chess

from pgn_parser import BoardReplay, IllegalMoveError, PGNParseError, PGNParser
from uci_session import EngineCommError

DEFAULT_MOVETIME_MS = 500


class AnalysisError(Exception):
    """A game could not be analysed. `cause` holds the underlying failure."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class MoveEvaluation:
    """Engine evaluation of the position in which a move was played."""
    move_number: int
    side_to_move: str     # "white" or "black"
    move_notation: str    # SAN, e.g. "Nf3"
    score_cp: int         # centipawns as reported by the engine

    @property
    def score_pawns(self):
        return self.score_cp / 100

    @property
    def display_text(self):
        return f"{self.score_pawns:+.2f}"


class GameAnalyser:
    """Evaluates every move of a game with a UCI session."""

    def __init__(self, session, think_time_ms=DEFAULT_MOVETIME_MS):
        self.session = session
        self.think_time_ms = think_time_ms

    def analyse(self, moves: List[chess.Move],
                progress_callback: Optional[Callable[[int, int], None]] = None
                ) -> List[MoveEvaluation]:
        """Return one MoveEvaluation per ply, in move order.

        Each position is evaluated before its move is applied. An illegal
        move or an engine failure raises AnalysisError and discards every
        evaluation gathered so far.
        """
        replay = BoardReplay()
        evaluations = []
        total = len(moves)

        for i, move in enumerate(moves):
            try:
                fen = replay.fen()
                side = replay.turn
                notation = replay.san(move)
                result = self.session.evaluate_position(fen, self.think_time_ms)
                replay.apply_move(move)
            except IllegalMoveError as e:
                raise AnalysisError(f"Invalid move in game: {e}", cause=e) from e
            except EngineCommError as e:
                raise AnalysisError(f"Error talking to engine: {e}", cause=e) from e

            evaluations.append(MoveEvaluation(
                move_number=i // 2 + 1,
                side_to_move=side,
                move_notation=notation,
                score_cp=result.score_cp,
            ))

            if progress_callback:
                progress_callback(i + 1, total)

        return evaluations

    def analyse_pgn(self, pgn_string, progress_callback=None):
        try:
            moves = PGNParser.parse_moves(pgn_string)
        except PGNParseError as e:
            raise AnalysisError(f"Could not parse game: {e}", cause=e) from e
        return self.analyse(moves, progress_callback=progress_callback)

    def analyse_game(self, game, progress_callback=None):
        """Analyse a ChessGame's PGN."""
        return self.analyse_pgn(game.pgn, progress_callback=progress_callback)


def format_analysis_table(evaluations):
    """Format evaluations as a two-column move table, one row per full move.

    The Eval column shows the evaluation before White's move.
    """
    lines = [
        "Move | White                | Black                | Eval",
        "-" * 61,
    ]
    for i in range(0, len(evaluations), 2):
        white = evaluations[i]
        black = evaluations[i + 1].move_notation if i + 1 < len(evaluations) else ""
        lines.append(f"{white.move_number:<4} | {white.move_notation:<20} | "
                     f"{black:<20} | {white.display_text}")
    return lines
