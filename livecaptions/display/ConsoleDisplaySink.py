import sys
from typing import Optional, TextIO


class ConsoleDisplaySink:
    """Prints every caption window, framed, for replay and debugging.

    Args:
        stream: Output stream (defaults to stdout)
        line_width: Frame width; None sizes the frame to the text
    """

    def __init__(self, stream: Optional[TextIO] = None, line_width: Optional[int] = None) -> None:
        self._stream: TextIO = stream if stream is not None else sys.stdout
        self.line_width: Optional[int] = line_width
        self.frames_shown: int = 0

    def show_text(self, text: str, duration_ms: Optional[int]) -> None:
        lines = text.split("\n") if text else [""]
        width = self.line_width or max(len(line) for line in lines)
        duration = f"{duration_ms}ms" if duration_ms is not None else "open"

        self.frames_shown += 1
        self._stream.write(f"+{'-' * (width + 2)}+ #{self.frames_shown} ({duration})\n")
        for line in lines:
            self._stream.write(f"| {line.ljust(width)} |\n")
        self._stream.write(f"+{'-' * (width + 2)}+\n")
        self._stream.flush()
