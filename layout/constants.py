# Centralized constants and defaults for the seating-chart editor

VERSION = "v1"
CURRENT_SCHEMA_VERSION = 1

# Viewport
DEFAULT_PIXELS_PER_METER = 100.0
ZOOM_MIN = 0.1
ZOOM_MAX = 5.0
ZOOM_DEFAULT = 1.0
ZOOM_STEP_FACTOR = 1.2
VIEWPORT_PADDING = 50.0          # screen pixels kept around fitted content
DEFAULT_VIEWPORT_WIDTH = 800.0
DEFAULT_VIEWPORT_HEIGHT = 600.0

# Grid and snapping
DEFAULT_GRID_SIZE = 0.5          # meters
DEFAULT_SNAP_THRESHOLD_PX = 10.0
DEFAULT_SNAP_THRESHOLD_M = 0.15

# Collision
COLLISION_BUFFER = 0.05          # meters

# History
MAX_HISTORY_ENTRIES = 100

# Elements
MIN_ELEMENT_SIZE = 0.05          # meters
DUPLICATE_OFFSET = 0.5
BOUNDARY_TOLERANCE = 0.01

# Chairs
CHAIR_SIZE = 0.45
CHAIR_OFFSET_DEFAULT = 0.4
CHAIR_SPACING_DEFAULT = 0.1

# Keyboard nudging
NUDGE_STEP = 0.01                # 1 px at 100 px/m
NUDGE_STEP_LARGE = 0.1
ROTATE_STEP = 90.0

# Venue
DEFAULT_VENUE_WIDTH = 20.0
DEFAULT_VENUE_HEIGHT = 20.0
DEFAULT_WALL_THICKNESS = 0.2

# (width, height) in meters and default capacity for each element type
ELEMENT_DEFAULTS = {
    "table-round": {"width": 1.5, "height": 1.5, "capacity": 8},
    "table-rectangular": {"width": 2.4, "height": 0.75, "capacity": 8},
    "table-oval": {"width": 2.2, "height": 1.2, "capacity": 10},
    "table-square": {"width": 1.5, "height": 1.5, "capacity": 8},
    "chair": {"width": CHAIR_SIZE, "height": CHAIR_SIZE},
    "bench": {"width": 1.8, "height": 0.4, "capacity": 3},
    "lounge": {"width": 2.0, "height": 0.9, "capacity": 3},
    "dance-floor": {"width": 4.0, "height": 4.0},
    "stage": {"width": 3.0, "height": 2.0},
    "cocktail-area": {"width": 3.0, "height": 3.0},
    "ceremony-area": {"width": 5.0, "height": 4.0},
    "bar": {"width": 2.0, "height": 0.6},
    "buffet": {"width": 2.4, "height": 0.75},
    "cake-table": {"width": 0.9, "height": 0.9},
    "gift-table": {"width": 1.5, "height": 0.75},
    "dj-booth": {"width": 1.5, "height": 0.8},
    "flower-arrangement": {"width": 0.5, "height": 0.5},
    "photo-booth": {"width": 2.5, "height": 2.0},
    "arch": {"width": 2.5, "height": 0.5},
    "custom": {"width": 1.0, "height": 1.0},
}

DEFAULT_ZONE_FILL = "#e0e7ff"
DEFAULT_ZONE_BORDER = "#6366f1"
