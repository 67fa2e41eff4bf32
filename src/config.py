import os
from pathlib import Path


def _default_data_root() -> str:
    """
    Determine a writable data root for mdmirror.

    Priority:
      1. MDMIRROR_DATA_DIR environment variable (explicit override)
      2. XDG data directory: $XDG_DATA_HOME/mdmirror or ~/.local/share/mdmirror
    """
    override = os.environ.get("MDMIRROR_DATA_DIR")
    if override:
        return override

    home = str(Path.home())
    xdg_data_home = os.environ.get("XDG_DATA_HOME", os.path.join(home, ".local", "share"))
    return os.path.join(xdg_data_home, "mdmirror")


# Writable application data root (per-user by default)
PARENT_DIR = _default_data_root()

# Paths
SETTINGS_FILE = os.path.join(PARENT_DIR, "settings.cfg")

# ---------------------------------------------------------------------------
# Search / highlight / scroll tuning
# ---------------------------------------------------------------------------

# Quiet period before a typed query re-triggers matching.
SEARCH_DEBOUNCE_MS = 300

# Characters of surrounding text kept on each side of a match.
SEARCH_CONTEXT_CHARS = 50

# Guard window covering a programmatic smooth scroll to a search result.
SCROLL_SYNC_COOLDOWN_MS = 500

# Duration of the smooth-scroll animation used by the GTK panes.
SMOOTH_SCROLL_DURATION_MS = 250

# Upper bound on the characters scanned per search target. None scans the
# whole document on every search.
MAX_SEARCH_DOCUMENT_CHARS = None

MARKDOWN_EXTENSIONS = ('.md', '.markdown')

# File listings are reused for this long before the directory is walked again.
FILE_TREE_CACHE_SECONDS = 60

VIEW_MODES = ('preview', 'edit', 'split')

# ---------------------------------------------------------------------------
# Persisted settings
# ---------------------------------------------------------------------------

SETTINGS_CONFIG = {
    # Last used layout: 'preview', 'edit' or 'split'.
    'VIEW_MODE': {'type': str, 'default': 'preview'},
    'SIDEBAR_VISIBLE': {'type': bool, 'default': True},
    'THEME': {'type': str, 'default': 'light'},
    'FONT_FAMILY': {'type': str, 'default': 'Monospace'},
    'FONT_SIZE': {'type': int, 'default': 12},
    'PREVIEW_FONT_FAMILY': {'type': str, 'default': 'Sans'},
    # Directory shown in the sidebar on startup.
    'LAST_DIRECTORY': {'type': str, 'default': ''},
    'WINDOW_WIDTH': {'type': int, 'default': 1100},
    'WINDOW_HEIGHT': {'type': int, 'default': 750},
}
