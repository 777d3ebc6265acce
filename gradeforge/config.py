import os

# Category table
FINAL_CATEGORY_NAME = "FINAL"
MAX_CATEGORY_ROWS = 15  # 14 non-final + FINAL
DEFAULT_BLANK_ROWS = 2

# Weights must total 100%
WEIGHT_TOTAL = 100.0
WEIGHT_TOLERANCE = 1e-9

# Scores and targets are percentages
SCORE_MIN = 0.0
SCORE_MAX = 100.0

# Outcome bands for the required final score
UNREALISTIC_ABOVE = 100.0
HIGH_EFFORT_THRESHOLD = 90.0

# What-if mode
DEFAULT_WHAT_IF_SCORE = 85
WHAT_IF_TABLE_SCORES = (50, 60, 70, 80, 90, 100)

# Export / import
EXPORT_APP_NAME = "GradeForge"
EXPORT_VERSION = 1
EXPORT_FILENAME = "gradeforge-export.json"

LOG_LEVEL = os.getenv("GRADEFORGE_LOG_LEVEL", "INFO")
