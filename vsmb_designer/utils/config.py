# vsmb_designer/utils/config.py
"""
Central configuration file for the state machine builder.

Contains static application settings, payload format constants and the
geometry defaults used by the layout providers.
"""

# ==============================================================================
# STATIC APPLICATION CONFIGURATION
# ==============================================================================
# These values are constant and define the application's identity.

APP_VERSION = "1.0.0"
APP_NAME = "Visual State Machine Builder"
FILE_EXTENSION = ".json"

# Envelope used for file payloads and shared links
VSMB_FORMAT = "vsmb"
VSMB_VERSION = 1
SHARE_QUERY_PARAM = "state"
DEFAULT_SHARE_BASE_URL = "https://vsmb.local/"

# Default model used by the editor on startup / reset
DEFAULT_MACHINE_NAME = "MyStateMachine"
DEFAULT_NEW_STATE_LABEL = "new_state"
DEFAULT_MACHINE_FALLBACK_NAME = "StateMachine"
DEFAULT_IMPORTED_MACHINE_NAME = "ImportedStateMachine"

# Editor history
MAX_HISTORY = 50
MAX_DIAGRAM_HISTORY = 30
AUTOSAVE_STORAGE_KEY = "vsmb-autosave"
DIAGRAM_HISTORY_STORAGE_KEY = "vsmb-history"
USER_TEMPLATES_STORAGE_KEY = "vsmb-user-templates"
SETTINGS_STORAGE_KEY = "vsmb-settings"

# Advisory analysis
MAX_SUGGESTIONS = 5


# ==============================================================================
# LAYOUT GEOMETRY
# ==============================================================================

NODE_WIDTH = 200
NODE_HEIGHT = 88
HORIZONTAL_GAP = 140
VERTICAL_GAP = 120

# Default grid for states without a stored position
GRID_ORIGIN_X = 100
GRID_ORIGIN_Y = 80
GRID_STEP_X = 220
GRID_STEP_Y = 140
GRID_COLUMNS = 3

# Leveling layout origin
LEVEL_ORIGIN_X = 80
LEVEL_ORIGIN_Y = 60

DUPLICATE_OFFSET = 60
DEFAULT_LAYOUT_TIMEOUT_S = 5.0
GRAPHVIZ_PADDING = 50
