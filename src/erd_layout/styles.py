from __future__ import annotations

# ============================================================================
# Font metrics — character width estimates for Inter at different sizes.
# ============================================================================


def estimate_text_width(text: str, font_size: float, font_weight: int) -> float:
    """Average character width in px at the given font size and weight (proportional font)."""
    if font_weight >= 600:
        width_ratio = 0.58
    elif font_weight >= 500:
        width_ratio = 0.55
    else:
        width_ratio = 0.52
    return len(text) * font_size * width_ratio


def estimate_mono_text_width(text: str, font_size: float) -> float:
    """Average character width in px for monospace fonts (uniform glyph width)."""
    return len(text) * font_size * 0.6


# Fixed font sizes (px)
FONT_SIZES = {
    "entity_name": 13,
    "column": 11,
}

# Font weights per element type
FONT_WEIGHTS = {
    "entity_name": 600,
    "column": 400,
}

# ============================================================================
# Entity box padding
# ============================================================================

# Horizontal padding on each side of the longest label
ENTITY_BOX_PAD_X = 12

# Gap between a column name and its key markers
KEY_MARKER_GAP = "  "
