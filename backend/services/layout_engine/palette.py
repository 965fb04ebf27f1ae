"""
Stateless colour assignment by placement index.

Colours depend only on the index, never on geometry, so any layout mode
can share them.
"""

PASTEL_PALETTE = [
    "#93c5fd",  # sky
    "#fca5a5",  # rose
    "#d8b4fe",  # violet
    "#facc15",  # amber
    "#86efac",  # mint
    "#f9a8d4",  # pink
    "#fdba74",  # orange
    "#818cf8",  # indigo
    "#7dd3fc",  # light blue
    "#a855f7",  # lavender
    "#a3e635",  # lime
    "#fde68a",  # soft yellow
    "#fb7185",  # blush
    "#bae6fd",  # pale sky
    "#e5b3fe",  # pastel purple
    "#f97373",  # coral
    "#34d399",  # green
]


def shade_color(hex_color: str, percent: float) -> str:
    """Blend toward white (positive *percent*) or black (negative)."""
    cleaned = hex_color.lstrip("#")
    if len(cleaned) == 3:
        cleaned = "".join(ch * 2 for ch in cleaned)
    num = int(cleaned, 16)
    r, g, b = (num >> 16) & 0xFF, (num >> 8) & 0xFF, num & 0xFF

    target = 0 if percent < 0 else 255
    p = abs(percent) / 100.0
    r, g, b = (int(round((target - c) * p + c)) for c in (r, g, b))
    return f"#{r:02x}{g:02x}{b:02x}"


def pick_color(index: int) -> str:
    return PASTEL_PALETTE[index % len(PASTEL_PALETTE)]


def pick_gradient(index: int, angle: int = 145, lighten: float = 40) -> str:
    """CSS linear-gradient from a slightly darker to a lighter palette tone."""
    base = pick_color(index)
    return f"linear-gradient({angle}deg, {shade_color(base, -3)}, {shade_color(base, lighten)})"
