"""Label utilities (overlay colors and display text)."""

from __future__ import annotations

_DEFAULT_COLOR = (60, 179, 113)  # green

# Substring match on the lowercased label; first matching group wins.
_COLOR_BY_KEYWORD: tuple[tuple[tuple[str, ...], tuple[int, int, int]], ...] = (
    (("shirt",), (66, 135, 245)),  # blue
    (("pants", "trousers"), (139, 69, 19)),  # brown
    (("dress",), (255, 105, 180)),  # pink
    (("shoes", "sneakers"), (255, 165, 0)),  # orange
    (("hat", "cap"), (128, 0, 128)),  # purple
)


def label_color(label: str) -> tuple[int, int, int]:
    """Return the overlay RGB color for a clothing label."""
    lowered = label.strip().lower()
    for keywords, color in _COLOR_BY_KEYWORD:
        if any(k in lowered for k in keywords):
            return color
    return _DEFAULT_COLOR


def item_caption(label: str, confidence: float) -> str:
    """Caption drawn next to a box, e.g. "shirt 0.87"."""
    return f"{label} {confidence:.2f}"


def confidence_percent(confidence: float) -> str:
    """Confidence as a one-decimal percentage, e.g. "87.3%"."""
    return f"{confidence * 100:.1f}%"
