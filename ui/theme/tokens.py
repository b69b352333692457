"""
Focus Console Design Tokens
Dark theme for bench and lab use: Slate neutrals with a Teal accent
"""

# =============================================================================
# COLOR PALETTE
# =============================================================================

class Colors:
    """Slate neutrals + Teal accent"""

    # === SLATE GRAY SCALE (Neutrals) ===
    gray_1 = "#111113"   # App background
    gray_2 = "#18191B"   # Secondary background
    gray_3 = "#212225"   # Cards
    gray_4 = "#272A2D"   # Inputs, table rows
    gray_5 = "#2E3135"   # Hover
    gray_6 = "#363A3F"   # Subtle borders
    gray_7 = "#43484E"   # Strong borders
    gray_8 = "#5A6169"   # Muted text
    gray_9 = "#696E77"   # Disabled text
    gray_11 = "#B0B4BA"  # Secondary text
    gray_12 = "#EDEEF0"  # Primary text

    # === TEAL SCALE (Accent) ===
    teal_3 = "#0D2D2A"
    teal_6 = "#0F5A52"
    teal_9 = "#12A594"   # Primary solid
    teal_10 = "#0EB39E"  # Hovered primary
    teal_11 = "#0BD8B6"  # Accent text

    # === SEMANTIC ALIASES ===
    bg_app = gray_1
    bg_surface = gray_2
    bg_card = gray_3
    bg_input = gray_4
    bg_hover = gray_5

    text_primary = gray_12
    text_secondary = gray_11
    text_muted = gray_8
    text_disabled = gray_9

    border_subtle = gray_6
    border_default = gray_7
    border_focus = teal_6

    accent_subtle = teal_3
    accent_default = teal_9
    accent_hover = teal_10
    accent_text = teal_11

    # === STATUS COLORS ===
    success_default = "#30A46C"
    success_text = "#3DD68C"
    warning_default = "#FFB224"
    warning_text = "#FFD166"
    error_default = "#E5484D"
    error_text = "#FF6B6B"

    # === FOCUS SCORE BANDS (relative to session best) ===
    score_peak = success_text      # >= 95%
    score_close = warning_text     # >= 75%
    score_far = error_text         # below

    # ROI rubber band on the preview
    roi_outline = teal_11
    roi_fill = "rgba(11, 216, 182, 40)"


# =============================================================================
# TYPOGRAPHY
# =============================================================================

class Typography:
    """Typography scale - Segoe UI (Windows) / system sans fallback"""

    family_text = "Segoe UI Variable Text, Segoe UI, SF Pro Text, -apple-system, sans-serif"
    family_mono = "Cascadia Code, Consolas, SF Mono, monospace"

    size_score = 40      # Big composite score
    size_title = 20
    size_subtitle = 16   # Card headers
    size_body = 14
    size_caption = 12
    size_small = 11

    weight_regular = 400
    weight_semibold = 600


# =============================================================================
# SPACING
# =============================================================================

class Spacing:
    """Spacing scale based on 4px grid"""

    xs = 4
    sm = 8
    md = 12
    base = 16
    lg = 24

    card_padding = 16
    card_gap = 12
    element_gap = 8


# =============================================================================
# LAYOUT
# =============================================================================

class Layout:
    """Layout constants"""

    radius_sm = 4
    radius_md = 8

    focus_panel_width = 420
    tile_min_width = 120
    history_min_height = 180
    preview_min_size = (320, 240)
