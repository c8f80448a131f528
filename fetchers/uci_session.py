# uci_session.py

import enum
import logging
import queue
import re
import subprocess
import threading
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

UCI_OK = "uciok"
READY_OK = "readyok"
BEST_MOVE = "bestmove"

SCORE_CP_RE = re.compile(r"score cp (-?\d+)")
SCORE_MATE_RE = re.compile(r"score mate (-?\d+)")
DEPTH_RE = re.compile(r"\bdepth (\d+)")
BEST_MOVE_RE = re.compile(r"bestmove (\S+)")

QUIT_TIMEOUT = 2.0  # seconds to wait for the engine to exit before killing it

_EOF = object()


class EngineError(Exception):
    """Base class for engine session failures."""


class EngineStartupError(EngineError):
    """The engine could not be started or never completed the handshake."""


class EngineCommError(EngineError):
    """The engine channel failed mid-session. The session is unusable."""


class EngineBusyError(EngineCommError):
    """A second search was requested while one is still running."""


class EngineTimeout(Exception):
    """No line arrived from the engine within the read timeout."""


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    BUSY = "busy"
    CLOSED = "closed"


def _last_int(pattern, text):
    matches = pattern.findall(text)
    return int(matches[-1]) if matches else None


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one `go` search."""
    score_cp: int                 # centipawns from the side to move, 0 if unreported
    score_mate: Optional[int] = None
    best_move: Optional[str] = None  # UCI text of the engine's best move
    depth: Optional[int] = None
    transcript: str = ""

    @classmethod
    def from_transcript(cls, lines: List[str]) -> "SearchResult":
        """Build a result from every line read up to and including `bestmove`.

        The last reported `score cp` wins. A search that never reports one
        (forced or terminal positions on some builds) scores 0.
        """
        text = "\n".join(lines)
        score_cp = _last_int(SCORE_CP_RE, text)

        best_move = None
        if lines:
            match = BEST_MOVE_RE.search(lines[-1])
            if match and match.group(1) != "(none)":
                best_move = match.group(1)

        return cls(
            score_cp=score_cp if score_cp is not None else 0,
            score_mate=_last_int(SCORE_MATE_RE, text),
            best_move=best_move,
            depth=_last_int(DEPTH_RE, text),
            transcript=text,
        )


class EngineProcess:
    """Owns one engine subprocess and its stdin/stdout pipes."""

    def __init__(self, engine_path):
        self.engine_path = engine_path
        self._proc = None
        self._reader = None
        self._lines = queue.Queue()

    def start(self):
        try:
            self._proc = subprocess.Popen(
                [self.engine_path],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                universal_newlines=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise EngineStartupError(
                f"Failed to start engine at {self.engine_path}: {e}. Is the path correct?") from e

        if self._proc.stdin is None or self._proc.stdout is None:
            self.kill()
            raise EngineStartupError("Engine pipes are unavailable")

        self._reader = threading.Thread(
            target=self._pump, args=(self._proc.stdout,), daemon=True)
        self._reader.start()

    def _pump(self, stream):
        """Copy engine output lines into the queue, then mark end-of-stream."""
        try:
            for line in stream:
                self._lines.put(line.rstrip("\r\n"))
        except (OSError, ValueError) as e:
            logger.debug("Engine stdout read failed: %s", e)
        finally:
            self._lines.put(_EOF)

    def read_line(self, timeout=None):
        """Return the next output line, or None once the engine's stdout closed.

        Raises EngineTimeout if `timeout` seconds pass without a line.
        """
        if self._reader is None:
            return None
        try:
            item = self._lines.get(timeout=timeout)
        except queue.Empty:
            raise EngineTimeout(f"No engine output within {timeout}s") from None
        if item is _EOF:
            self._lines.put(_EOF)  # keep end-of-stream visible to later reads
            return None
        return item

    def write_line(self, text):
        if self._proc is None or self._proc.stdin is None:
            raise EngineCommError("Engine is not running")
        try:
            self._proc.stdin.write(text + "\n")
            self._proc.stdin.flush()
        except (OSError, ValueError) as e:
            raise EngineCommError(f"Failed to send {text!r} to engine: {e}") from e

    def kill(self):
        if self._proc is not None:
            self._proc.kill()
        self.close()

    def close(self, timeout=QUIT_TIMEOUT):
        """Close both pipes and reap the process. Safe to call repeatedly."""
        proc, self._proc = self._proc, None
        if proc is None:
            return

        if proc.stdin is not None:
            try:
                proc.stdin.close()
            except BrokenPipeError:
                logger.debug("Engine stdin already broken")

        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.debug("Engine did not exit within %ss, killing it", timeout)
            proc.kill()
            proc.wait()

        if self._reader is not None:
            self._reader.join(timeout)
        if proc.stdout is not None:
            proc.stdout.close()


class UCISession:
    """Request/response layer over a UCI engine's line protocol.

    At most one search runs at a time; a second caller gets EngineBusyError.
    Any channel failure closes the session for good.
    """

    def __init__(self, engine_path, read_timeout=None, process_factory=EngineProcess):
        self.engine_path = engine_path
        self.read_timeout = read_timeout
        self._process_factory = process_factory
        self._process = None
        self._state = SessionState.UNINITIALIZED
        self._busy = threading.Lock()
        self._state_lock = threading.Lock()  # guards _state and _process

    @property
    def state(self):
        return self._state

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    def initialize(self):
        """Start the engine and wait for `uciok` then `readyok`."""
        if self._state is not SessionState.UNINITIALIZED:
            raise EngineCommError(f"Cannot initialize a session that is {self._state.value}")

        self._process = self._process_factory(self.engine_path)
        try:
            self._process.start()
            self._send("uci")
            self._read_until(UCI_OK)
            self._send("isready")
            self._read_until(READY_OK)
        except EngineStartupError:
            self._close()
            raise
        except EngineCommError as e:
            self._close()
            raise EngineStartupError(f"Engine handshake failed: {e}") from e

        with self._state_lock:
            if self._state is SessionState.UNINITIALIZED:
                self._state = SessionState.READY
        logger.debug("Engine %s ready", self.engine_path)

    def evaluate_position(self, fen, think_time_ms):
        """Search `fen` for `think_time_ms` milliseconds and return a SearchResult."""
        if not isinstance(think_time_ms, int) or think_time_ms <= 0:
            raise ValueError(f"think_time_ms must be a positive integer, got {think_time_ms!r}")

        if not self._busy.acquire(blocking=False):
            raise EngineBusyError("A search is already running on this session")
        try:
            with self._state_lock:
                if self._state is not SessionState.READY:
                    raise EngineCommError(f"Cannot evaluate: session is {self._state.value}")
                self._state = SessionState.BUSY

            try:
                self._send(f"position fen {fen}")
                self._send(f"go movetime {think_time_ms}")
                transcript = self._read_until(BEST_MOVE)
            except EngineCommError:
                self._close()
                raise

            with self._state_lock:
                if self._state is SessionState.BUSY:
                    self._state = SessionState.READY
        finally:
            self._busy.release()

        return SearchResult.from_transcript(transcript)

    def cancel(self):
        """Kill the engine. An in-flight search fails with EngineCommError."""
        logger.debug("Cancelling engine session")
        self._close(kill=True)

    def shutdown(self):
        """Send `quit` and release the engine. Safe to call more than once."""
        with self._state_lock:
            process, self._process = self._process, None
            self._state = SessionState.CLOSED
        if process is None:
            return

        try:
            process.write_line("quit")
        except EngineCommError as e:
            logger.debug("Skipping quit, engine already gone: %s", e)
        process.close()

    def _send(self, command):
        process = self._process
        if process is None:
            raise EngineCommError("Engine is not running")
        logger.debug(">> %s", command)
        process.write_line(command)

    def _read_until(self, marker):
        """Read lines until one contains `marker`; return all lines read."""
        process = self._process
        if process is None:
            raise EngineCommError("Engine is not running")

        lines = []
        while True:
            try:
                line = process.read_line(timeout=self.read_timeout)
            except EngineTimeout as e:
                logger.debug("No %r within %ss, killing engine", marker, self.read_timeout)
                self._close(kill=True)
                raise EngineCommError(f"Timed out waiting for {marker!r}") from e

            if line is None:
                logger.debug("Engine output closed while waiting for %r", marker)
                raise EngineCommError(f"Engine closed its output before {marker!r}")

            lines.append(line)
            if marker in line:
                return lines

    def _close(self, kill=False):
        with self._state_lock:
            self._state = SessionState.CLOSED
            process, self._process = self._process, None
        if process is None:
            return
        if kill:
            process.kill()
        else:
            process.close()
