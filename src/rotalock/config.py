"""rotalock configuration

Configuration groups:
- Rotation: update timeout, history slack, defaults
- Timer: host tick and sync cadence
- Persistence: settings file location
- History: selection history limits
- Selection filter: default blocking rules
- Web: control surface address
"""

import os
from pathlib import Path

# === Rotation ===
UPDATE_TIMEOUT_SECONDS = 1.0  # max time Updating may be held before synchronize() clears it
HISTORY_SLACK = 5  # history buffer capacity = queue length + slack
DEFAULT_MODE = os.environ.get("ROTALOCK_MODE", "history")  # "cycle" | "history"
DEFAULT_AUTO_FOCUS = True  # focus the updated panel after a dispatch
ENABLED_SETTINGS_KEY = "RotationLockSettings"  # persistence key for the enabled flag

# === Timer ===
TIMER_TICK_INTERVAL = 0.1  # host loop tick (seconds), idle queue drained every tick
SYNC_INTERVAL_SECONDS = 0.5  # periodic synchronize() cadence (seconds)

# === Persistence ===
PERSIST_DIR = Path(os.environ.get("ROTALOCK_HOME", Path.home() / ".rotalock"))
PERSIST_FILE = PERSIST_DIR / "settings.json"
PERSIST_VERSION = 1

# === History ===
HISTORY_MAX_COUNT = 50
HISTORY_MIN_LIMIT = 10
HISTORY_MAX_LIMIT = 200
HISTORY_SETTINGS_KEY = "SelectionHistory"
FAVORITES_SETTINGS_KEY = "Favorites"
RECORD_ASSETS = True
RECORD_SCENE_OBJECTS = True

# === Selection filter ===
# Category A (default on)
BLOCK_FOLDER_SELECTION = True
BLOCK_DEFAULT_ASSET = True
BLOCK_ASM_DEF = True
BLOCK_NATIVE_PLUGIN = True
# Category B (default off)
BLOCK_TEXT_ASSET = False
BLOCK_LIGHTING_SETTINGS = False
BLOCK_SHADER = False
BLOCK_FONT = False

NATIVE_PLUGIN_EXTENSIONS = (".dll", ".so", ".bundle")
ASM_DEF_EXTENSIONS = (".asmdef", ".asmref")

# === Web ===
WEB_HOST = os.environ.get("ROTALOCK_WEB_HOST", "127.0.0.1")
WEB_PORT = int(os.environ.get("ROTALOCK_WEB_PORT", "8766"))

# === Logging ===
LOG_LEVEL = os.environ.get("ROTALOCK_LOG_LEVEL", "INFO")

# === Metrics ===
METRICS_ENABLED = True

# === Host ===
HOST_TYPE = os.environ.get("ROTALOCK_HOST", "memory")  # "memory" | "memory-legacy"
DEMO_PANEL_COUNT = 3
