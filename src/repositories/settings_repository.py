"""
Repository for managing application settings persistence.
"""

from typing import Dict, Any
from pathlib import Path

from config import SETTINGS_FILE, SETTINGS_CONFIG

# DEFAULT_SETTINGS is computed from SETTINGS_CONFIG
DEFAULT_SETTINGS = {key: config['default'] for key, config in SETTINGS_CONFIG.items()}


class SettingsRepository:
    """
    Repository for managing application settings.

    Settings are stored as KEY=VALUE lines. Only keys declared in
    SETTINGS_CONFIG are read or written; search and scroll state never
    pass through here.
    """

    def __init__(self, settings_file: str = None):
        """
        Initialize the settings repository.

        Parameters
        ----------
        settings_file : str, optional
            Path to the settings file. Defaults to SETTINGS_FILE from config.
        """
        self.settings_file = Path(settings_file or SETTINGS_FILE)
        self._settings: Dict[str, Any] = {}
        self._explicit_keys: set = set()
        self._load()

    def _load(self) -> None:
        """Load settings from file."""
        self._settings = DEFAULT_SETTINGS.copy()
        self._explicit_keys = set()

        if not self.settings_file.exists():
            return

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith('#'):
                        continue

                    if '=' in line:
                        key, value = line.split('=', 1)
                        key = key.strip().upper()
                        value = value.strip()

                        if key in SETTINGS_CONFIG:
                            self._explicit_keys.add(key)
                            try:
                                if SETTINGS_CONFIG[key]['type'] == bool:
                                    self._settings[key] = value.lower() == 'true'
                                elif SETTINGS_CONFIG[key]['type'] == str:
                                    self._settings[key] = value.replace('\\n', '\n').replace('\\r', '')
                                else:
                                    self._settings[key] = SETTINGS_CONFIG[key]['type'](value)
                            except ValueError:
                                pass

        except (OSError, UnicodeDecodeError) as e:
            print(f"[SettingsRepository] Error loading settings: {e}")

    def get_all(self) -> Dict[str, Any]:
        """
        Get all settings.

        Returns
        -------
        Dict[str, Any]
            Dictionary of all settings.
        """
        return self._settings.copy()

    def reload(self) -> None:
        """Reload settings from disk, discarding any cached values."""
        self._load()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Parameters
        ----------
        key : str
            The setting key (case-insensitive, will be uppercased).
        default : Any, optional
            Default value if key not found.

        Returns
        -------
        Any
            The setting value, or default if not found.
        """
        key = key.upper()
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a setting value.

        Parameters
        ----------
        key : str
            The setting key (case-insensitive, will be uppercased).
        value : Any
            The value to set.

        Raises
        ------
        ValueError
            If the value cannot be converted to the configured type.
        """
        key = key.upper()
        if key in SETTINGS_CONFIG:
            expected_type = SETTINGS_CONFIG[key]['type']
            if not isinstance(value, expected_type):
                try:
                    if expected_type == bool:
                        if isinstance(value, str):
                            value = value.lower() == 'true'
                        else:
                            value = bool(value)
                    else:
                        value = expected_type(value)
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Cannot convert value for {key} to {expected_type.__name__}: {e}")

        self._settings[key] = value
        self._explicit_keys.add(key)

    def save(self) -> None:
        """Save settings to file."""
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)

            with open(self.settings_file, 'w', encoding='utf-8') as f:
                f.write("# mdmirror Settings\n")
                f.write("# Format: KEY=VALUE\n\n")

                for key in sorted(self._settings.keys()):
                    if key not in SETTINGS_CONFIG:
                        continue

                    value = self._settings[key]

                    if isinstance(value, bool):
                        value_str = 'true' if value else 'false'
                    elif isinstance(value, str):
                        value_str = value.replace('\n', '\\n').replace('\r', '\\r')
                    else:
                        value_str = str(value)

                    f.write(f"{key}={value_str}\n")

        except IOError as e:
            print(f"[SettingsRepository] Error saving settings: {e}")
            raise

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._settings = DEFAULT_SETTINGS.copy()
        self._explicit_keys = set()

    def is_explicitly_set(self, key: str) -> bool:
        """
        Check if a setting was explicitly set in the config file.

        Parameters
        ----------
        key : str
            The setting key.

        Returns
        -------
        bool
            True if the setting was explicitly set, False if using default.
        """
        return key.upper() in self._explicit_keys
