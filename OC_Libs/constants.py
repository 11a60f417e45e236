"""
Constants and configuration values for Open Canvas.

This module centralizes all constant values, magic numbers, and
configuration settings used by the filter primitives and style tables.
"""

# Luminance weights (ITU-R BT.601)
LUMA_RED = 0.299
LUMA_GREEN = 0.587
LUMA_BLUE = 0.114

# Channel limits
CHANNEL_MIN = 0
CHANNEL_MAX = 255
CHANNEL_COUNT = 4

# Edge detection
DEFAULT_EDGE_THRESHOLD = 30
EDGE_VALUE = 0
NO_EDGE_VALUE = 255
EDGE_THRESHOLD_CARICATURE = 25
EDGE_THRESHOLD_GHIBLI = 30
EDGE_THRESHOLD_CARTOON = 35
EDGE_THRESHOLD_ANIME = 40
EDGE_THRESHOLD_WALL = 40
EDGE_THRESHOLD_POP_ART = 50

# Spatial filters
DEFAULT_BOX_RADIUS = 1
GAUSSIAN_3X3_KERNEL = (
    1 / 16, 2 / 16, 1 / 16,
    2 / 16, 4 / 16, 2 / 16,
    1 / 16, 2 / 16, 1 / 16,
)
DEFAULT_BILATERAL_RADIUS = 2
DEFAULT_SIGMA_SPACE = 2.0
DEFAULT_SIGMA_COLOR = 30.0

# Color transforms
DEFAULT_SATURATION_BOOST = 1.5
CONTRAST_MIDPOINT = 128
HIGH_CONTRAST_FACTOR = 2.5
DEFAULT_STRETCH_GAMMA = 0.7
DEFAULT_DARKEN_FACTOR = 0.8
DEFAULT_POSTERIZE_LEVELS = 5

# Skin/sky/foliage heuristics (tuned by eye on the original style outputs)
SKIN_MIN_RED = 150
SKIN_MIN_GREEN = 100
SKIN_MIN_BLUE = 80
SKIN_GAINS = (1.15, 1.08, 0.9)
SKY_BLUE_GAIN = 1.2
FOLIAGE_GREEN_GAIN = 1.15

# Landscape (Ghibli) tones
LANDSCAPE_GAINS = (1.05, 1.15, 1.2)
SHADOW_CUTOFF = 60
SHADOW_LIFT = 15
HIGHLIGHT_CUTOFF = 200
HIGHLIGHT_WARMTH = (5, 2)

# Wall texture
WALL_NOISE_INTENSITY = 15
WALL_BLUR_MIX = 0.3
DEFAULT_NOISE_SEED = 0

# Halftone
MIN_DOT_SIZE = 4
DOT_SIZE_DIVISOR = 100
HALFTONE_BACKGROUND = (255, 255, 255)

# Mondrian
MONDRIAN_MIN_BLOCK = 10
MONDRIAN_BLOCK_DIVISOR = 20
MONDRIAN_MIN_LINE = 3
MONDRIAN_LINE_DIVISOR = 100
MONDRIAN_GRID_DIVISIONS = 5
MONDRIAN_LINE_COLOR = (0, 0, 0)

# Palettes (RGB)
MONDRIAN_PALETTE = (
    (255, 255, 255),
    (255, 0, 0),
    (255, 255, 0),
    (0, 0, 255),
    (0, 0, 0),
)
POP_ART_PALETTE = (
    (255, 255, 0),
    (255, 0, 0),
    (0, 0, 255),
    (0, 255, 255),
)
# One (dark, mid, light) palette per quadrant: top-left, top-right, bottom-left, bottom-right
WARHOL_QUADRANT_PALETTES = (
    ((255, 0, 0), (255, 255, 0), (0, 0, 255)),
    ((0, 255, 255), (255, 0, 255), (255, 255, 0)),
    ((0, 255, 0), (255, 165, 0), (0, 0, 255)),
    ((255, 0, 255), (0, 255, 255), (255, 255, 0)),
)
WARHOL_TONE_CUTOFFS = (85, 170)

# Overlays
ANIME_WARM_OVERLAY = (255, 158, 125)
ANIME_WARM_OPACITY = 0.1
SOFT_BLUR_OPACITY = 0.3

# Flood fill
DEFAULT_FILL_TOLERANCE = 0
FUZZY_FILL_TOLERANCE = 32
FLOOD_FILL_CANCEL_CHECK_INTERVAL = 256  # span pops between cancellation checks

# Chunked execution
DEFAULT_CHUNK_ROWS = 64

# Remote style services
DEFAULT_REMOTE_TIMEOUT = 60.0
DEFAULT_POLL_INTERVAL = 1.0
JOB_STATUS_PENDING = "pending"
JOB_STATUS_RUNNING = "running"
JOB_STATUS_SUCCEEDED = "succeeded"
JOB_STATUS_FAILED = "failed"

# Style names
STYLE_GHIBLI = "ghibli"
STYLE_ANIME_PORTRAIT = "anime_portrait"
STYLE_CARICATURE = "caricature"
STYLE_WYNWOOD = "wynwood"
STYLE_WARHOL = "warhol"
STYLE_MONDRIAN = "mondrian"
STYLE_LICHTENSTEIN = "lichtenstein"
STYLE_COLOR_ON_WALL = "color_on_wall"
STYLE_PENCIL_SKETCH = "pencil_sketch"

# File naming
OUTPUT_FILE_PREFIX = "styled_"
DEFAULT_OUTPUT_FORMAT = "PNG"
