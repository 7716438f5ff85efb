"""Width-bounded line wrapping for caption displays.

Two strategies:
- word mode for space-delimited scripts: greedy packing of whitespace tokens
- character mode for scripts without inter-word spacing (Chinese, Japanese):
  fixed number of characters per line
"""


def wrap_text(text: str, max_width: int, character_mode: bool = False) -> list[str]:
    """Split text into lines of at most max_width characters.

    Args:
        text: Text to wrap
        max_width: Maximum characters per line; values below 1 are treated as 1
        character_mode: Break on character count instead of word boundaries

    Returns:
        Wrapped lines, empty list for empty or whitespace-only input
    """
    if not text:
        return []

    max_width = max(1, int(max_width))

    if character_mode:
        return _wrap_characters(text, max_width)
    return _wrap_words(text, max_width)


def _wrap_words(text: str, max_width: int) -> list[str]:
    """Greedy word wrap; tokens longer than max_width are hard-split."""
    lines: list[str] = []
    current_line = ""

    for word in text.split():
        if len(word) > max_width:
            if current_line:
                lines.append(current_line)
            pieces = [word[i:i + max_width] for i in range(0, len(word), max_width)]
            lines.extend(pieces[:-1])
            current_line = pieces[-1]
            continue

        test_line = current_line + " " + word if current_line else word
        if len(test_line) > max_width:
            lines.append(current_line)
            current_line = word
        else:
            current_line = test_line

    if current_line:
        lines.append(current_line)

    return lines


def _wrap_characters(text: str, max_width: int) -> list[str]:
    """Pack raw characters max_width per line."""
    flattened = text.replace("\r", " ").replace("\n", " ").strip()
    return [flattened[i:i + max_width] for i in range(0, len(flattened), max_width)]
