"""Greedy word wrapping at a fixed column count."""

from typing import List


def wrap_paragraph(paragraph: str, num_columns: int) -> List[str]:
    """Wrap a paragraph (no newlines) into lines of at most num_columns.

    Words are separated by single spaces; a word longer than a line is
    broken across as many lines as needed. An empty paragraph still
    occupies one line.
    """
    if num_columns < 1:
        num_columns = 1
    if not paragraph:
        return [""]

    lines: List[str] = []
    current_line = None

    for word in paragraph.split(" "):
        if current_line is not None:
            if len(current_line) + 1 + len(word) <= num_columns:
                current_line += " " + word
                continue
            lines.append(current_line)
            current_line = None

        # Word starts a new line, breaking it if it is too long
        while len(word) > num_columns:
            lines.append(word[:num_columns])
            word = word[num_columns:]
        current_line = word

    lines.append(current_line)
    return lines


def count_lines(text: str, num_columns: int) -> int:
    """Number of visual lines `text` takes when every paragraph is wrapped."""
    return sum(len(wrap_paragraph(p, num_columns)) for p in text.split("\n"))
