from __future__ import annotations

import shutil
from typing import Literal, Union

# --------------------------------------------------
# Layout constants
# --------------------------------------------------

DEFAULT_WIDTH = 80
LOG_GUTTER_WIDTH = 10  # "[ INFO ]  " etc.

Width = Union[int, Literal["auto"]]


def _resolve_width(width: Width) -> int:
    if width == "auto":
        cols = shutil.get_terminal_size((DEFAULT_WIDTH, 24)).columns
        return max(DEFAULT_WIDTH, cols - LOG_GUTTER_WIDTH)
    return max(DEFAULT_WIDTH, int(width))


# --------------------------------------------------
# Banner
# --------------------------------------------------

REQUESTARR_BANNER = r"""

 ____                            _
|  _ \ ___  __ _ _   _  ___  ___| |_ __ _ _ __ _ __
| |_) / _ \/ _` | | | |/ _ \/ __| __/ _` | '__| '__|
|  _ <  __/ (_| | |_| |  __/\__ \ || (_| | |  | |
|_| \_\___|\__, |\__,_|\___||___/\__\__,_|_|  |_|
              |_|

"""


# --------------------------------------------------
# Headers / sections
# --------------------------------------------------


def REQUESTARR_HEADER(
    title: str,
    *,
    width: Width = DEFAULT_WIDTH,
    pad: int = 8,
    motif: str = "•⊱♪⊰•",
) -> str:
    title = title.strip()
    inner = max(_resolve_width(width) - 2, len(title) + pad * 2)

    filler = inner - len(motif)
    left = filler // 2
    right = filler - left

    top = f"╔{'═' * left}{motif}{'═' * right}╗"
    mid = f"│{title.center(inner)}│"
    bot = f"╚{'═' * left}{motif}{'═' * right}╝"

    return f"\n{top}\n{mid}\n{bot}\n"


def REQUESTARR_DIVIDER(
    *,
    width: Width = DEFAULT_WIDTH,
    char: str = "─",
) -> str:
    return char * _resolve_width(width)


# --------------------------------------------------
# Symbols
# --------------------------------------------------


class SYMBOLS:
    OK = "✔"
    FAIL = "✖"
    WARN = "⚠"

    # Per-request outcomes in the sync report
    ADDED = "➕"
    PRESENT = "≡"
    UNRESOLVED = "?"
    REJECTED = "✖"

    AUTH = "🔒"
    PLAYLIST = "📻"
