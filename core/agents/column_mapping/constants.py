"""Constants for column mapping."""

# Sentinel target for columns that should not be mapped
UNMAPPED = "unmapped"

# Sample values considered per column
DEFAULT_SAMPLE_SIZE = 10

# Confidence levels assigned by the heuristics
EXAMPLE_MATCH_CONFIDENCE = 0.95
KEYWORD_MATCH_CONFIDENCE = 0.70
CONTENT_CONFIDENCE_CAP = 0.95
NUMBER_CONTENT_BOOST = 0.20
DATE_CONTENT_BOOST = 0.15
WEEK_NUMBER_CONFIDENCE = 0.85
IDENTIFIER_CONFIDENCE = 0.3

# Headers shorter than this never match by being contained in an example
MIN_CONTAINED_HEADER_LENGTH = 3

# Thresholds
CANDIDATE_RETENTION_THRESHOLD = 0.5  # catalog candidates must exceed this
PATTERN_DETECTOR_GATE = 0.6  # detectors run only while the best candidate is below this
MIN_USABLE_CONFIDENCE = 0.3  # arbitration winners below this are discarded
FALLBACK_THRESHOLD = 0.5  # model fallback runs below this
SENTINEL_CEILING = 0.3  # pattern sentinels replace winners at or below this

# Classifier source names
SOURCE_OVERRIDE = "literal_override"
SOURCE_CATALOG = "catalog"
SOURCE_PATTERN = "pattern_detector"
SOURCE_MODEL = "language_model"
