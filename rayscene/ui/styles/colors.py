"""Canvas colour constants."""

# Canvas
HOVER = "#00FFFF"

# Optical objects
MIRROR = "#A8A8A8"
MIRROR_POINT = "#808080"
BLOCKER = "#46230A"

# Module control points
CONTROL_POINT = "#808080"
