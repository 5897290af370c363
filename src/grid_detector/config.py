# Dark-pixel detection
DARK_PIXEL_THRESHOLD = 50
MAX_GAP_PIXELS = 3

# Border geometry
MIN_BORDER_FRACTION = 0.4
BORDER_EXPANSION = 0
EXPECTED_BORDER_THICKNESS = 2
THICKNESS_TOLERANCE = 2

# Search regions (fractions of image height/width)
SEARCH_TOP_MAX_Y = 0.35
SEARCH_BOTTOM_MIN_Y = 0.65
SEARCH_LEFT_MAX_X = 0.3
SEARCH_RIGHT_MIN_X = 0.7

# Corner detection
CORNER_SIZE = 10
CORNER_POSITION_TOLERANCE = 5
CORNER_ARM_CHECK_TOLERANCE = 2
CORNER_MIN_ARM_RATIO = 0.6

# Internal grid-line verification
GRID_LINE_VERIFICATION_ENABLED = True
MIN_INTERNAL_LINES = 2
SPACING_TOLERANCE = 0.1
MIN_LINES_FOR_SPACING_ANALYSIS = 3
MIN_SPACING_CONSISTENCY = 0.7

# Line detection
MIN_LENGTH_FRACTION = 0.8
RUN_MATCH_FRACTION = 0.9
RUN_START_TOLERANCE_MIN_PX = 5
RUN_START_TOLERANCE_FRACTION = 0.05
LINE_GAP_THRESHOLD = 3
INTERNAL_LINE_MARGIN = 5
INTERNAL_LINE_SPAN_START = 0.1
INTERNAL_LINE_SPAN_END = 0.9

# Confidence weights and thresholds
LENGTH_WEIGHT = 0.6
THICKNESS_WEIGHT = 0.4
MIN_CANDIDATE_CONFIDENCE = 0.4
MIN_CANDIDATE_CONFIDENCE_NEAR = 0.3
MIN_OUTERMOST_CONFIDENCE = 0.5
CONFIDENCE_DIFF_THRESHOLD = 0.2
CONFIDENCE_PREFER_DISTANCE_PX = 50
MIN_OVERALL_CONFIDENCE = 0.35
BORDER_WEIGHT = 0.3
CORNER_WEIGHT = 0.25
ALIGNMENT_WEIGHT = 0.25
GRID_LINE_WEIGHT = 0.2
REGULARITY_BOOST = 0.2

# Weight scales for candidates found in the guided vertical search band
NEAR_LENGTH_SCALE = 0.83
NEAR_THICKNESS_SCALE = 0.75
SYNTHETIC_BORDER_CONFIDENCE = 0.6

# Alignment tolerances
WELL_ALIGNED_PX = 15
WELL_ALIGNED_PCT = 0.03
ACCEPTABLE_PX = 30
ACCEPTABLE_PCT = 0.1
BORDER_TOLERANCE_PX = 15
MIN_ALIGNED_FRACTION = 0.5
VERTICAL_SEARCH_TOLERANCE = 30
VERTICAL_MISALIGNMENT_THRESHOLD = 20
POSITION_BONUS_FACTOR = 0.2

# Fallback margins (fraction of page dimensions)
FALLBACK_MARGIN_TOP = 0.12
FALLBACK_MARGIN_BOTTOM = 0.12
FALLBACK_MARGIN_LEFT = 0.08
FALLBACK_MARGIN_RIGHT = 0.06

# Concurrency
DEFAULT_MAX_CONCURRENCY = 8

# Output
CROP_SUFFIX = "_grid"
DEBUG_SUFFIX = "_debug"
