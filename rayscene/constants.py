"""Application-wide constants.

Module expansion, scene and canvas defaults. Lengths are in scene
units (canvas pixels at zoom 1), angles in degree, wavelengths in nm.
"""

APP_NAME = "rayscene"
APP_VERSION = "0.1.0"

# Module expansion
DEFAULT_MAX_LOOP_LENGTH = 1000

# Scene file format
SCENE_SCHEMA_VERSION = "1.0"

# Light
GREEN_WAVELENGTH = 540  # nm
DEFAULT_BANDWIDTH = 10  # nm

# Ray tracing
MIN_SHOT_LENGTH = 1e-6
MIN_SHOT_LENGTH_SQUARED = MIN_SHOT_LENGTH * MIN_SHOT_LENGTH

# Canvas grid
DEFAULT_GRID_SIZE = 20.0

# Canvas interaction
CLICK_TOLERANCE = 10.0  # scene units
CONTROL_POINT_INNER_RADIUS = 2.0
CONTROL_POINT_OUTER_RADIUS = 5.0
