"""Colorful CLI output helpers."""

import sys

from ..models.view import BoardView, CardView

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
BULLET = "\u2022"  # •
CROSS = "\u2717"  # ✗


def _supports_color() -> bool:
    """Check if terminal supports color output."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _colorize(text: str, color: str) -> str:
    """Apply color to text if terminal supports it."""
    if _supports_color():
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def header(message: str) -> None:
    """Print header message in blue."""
    print(_colorize(message, BLUE))


def error(message: str) -> None:
    """Print error message with red cross."""
    print(f"{_colorize(CROSS, RED)} {message}", file=sys.stderr)


def format_card(card: CardView) -> str:
    """One-line summary of a card."""
    parts = [f"[{card.priority.value}]", card.title]
    if card.assignees:
        parts.append("@" + ", @".join(user.name for user in card.assignees))
    if card.labels:
        parts.append(" ".join(f"#{name}" for name in card.label_names))
    if card.checklist:
        parts.append(f"({card.checklist_completion}%)")
    if card.is_overdue:
        parts.append(_colorize("overdue", RED))
    return " ".join(parts)


def render_board(board: BoardView) -> list[str]:
    """Render a board as indented plain-text lines."""
    lines = [_colorize(board.title, BLUE)]
    for lst in board.lists:
        count = f"{len(lst.cards)}"
        if lst.wip_limit and lst.wip_limit.enabled and lst.wip_limit.limit:
            count = f"{count}/{lst.wip_limit.limit}"
            if lst.is_over_wip_limit:
                count = _colorize(count, RED)
        lines.append(f"  {lst.title} ({count})")
        if not lst.cards:
            lines.append(_colorize("    (empty)", DIM))
        for card in lst.cards:
            lines.append(f"    {BULLET} {format_card(card)}")
    return lines


def print_board(board: BoardView) -> None:
    for line in render_board(board):
        print(line)
