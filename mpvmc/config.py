"""
Configuration management for the mp-vmc tracker.
Supports JSON config files with environment variable overrides.
"""
import copy
import json
import os
from typing import Dict, Any, Optional

from .errors import ConfigError


class Config:
    """Configuration manager with file and environment variable support"""

    DEFAULT_CONFIG = {
        "camera": {
            "device_id": 0,
            "width": 1280,
            "height": 720,
            "fps": 30,
            "buffer_size": 1,
            "mirror": True
        },
        "tracking": {
            "enable_face": True,
            "enable_hands": True,
            "enable_pose": True,
            "smoothing_factor": 0.5
        },
        "vmc": {
            "enabled": True,
            "address": "127.0.0.1",
            "port": 39539
        },
        "osc": {
            "enabled": False,
            "host": "127.0.0.1",
            "port": 9000,
            "queue_size": 10
        },
        "display": {
            "show_window": False,
            "window_title": "mp-vmc Preview"
        },
        "mediapipe": {
            "model_complexity": 1,
            "min_detection_confidence": 0.5,
            "min_tracking_confidence": 0.5,
            "refine_face_landmarks": False
        }
    }

    ENV_MAPPINGS = {
        "MPVMC_CAMERA_ID": ("camera", "device_id"),
        "MPVMC_CAMERA_WIDTH": ("camera", "width"),
        "MPVMC_CAMERA_HEIGHT": ("camera", "height"),
        "MPVMC_CAMERA_FPS": ("camera", "fps"),
        "MPVMC_MIRROR": ("camera", "mirror"),
        "MPVMC_SMOOTHING": ("tracking", "smoothing_factor"),
        "MPVMC_VMC_ENABLED": ("vmc", "enabled"),
        "MPVMC_VMC_ADDRESS": ("vmc", "address"),
        "MPVMC_VMC_PORT": ("vmc", "port"),
        "MPVMC_OSC_ENABLED": ("osc", "enabled"),
        "MPVMC_OSC_HOST": ("osc", "host"),
        "MPVMC_OSC_PORT": ("osc", "port"),
        "MPVMC_SHOW_WINDOW": ("display", "show_window"),
        "MPVMC_MIN_DETECTION_CONFIDENCE": ("mediapipe", "min_detection_confidence"),
        "MPVMC_MIN_TRACKING_CONFIDENCE": ("mediapipe", "min_tracking_confidence")
    }

    def __init__(self, config_file: Optional[str] = "config.json"):
        """
        Args:
            config_file: JSON file merged over the defaults; None uses the
                defaults plus environment overrides only
        """
        self.config_file = config_file
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file with fallback to defaults"""
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_file is None:
            pass
        elif os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r') as f:
                    file_config = json.load(f)
                config = self._deep_merge(config, file_config)
                print(f"📋 Loaded configuration from {self.config_file}")
            except (json.JSONDecodeError, IOError) as e:
                print(f"⚠️  Failed to load config file {self.config_file}: {e}")
                print("🔄 Using default configuration")
        else:
            print(f"📄 Config file {self.config_file} not found, using defaults")

        return self._apply_env_overrides(config)

    def reload(self, config_file: Optional[str]) -> None:
        """Point at a different config file and reload from scratch"""
        self.config_file = config_file
        self.config = self._load_config()

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries"""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        for env_var, (section, key) in self.ENV_MAPPINGS.items():
            if env_var not in os.environ:
                continue
            value = os.environ[env_var]
            # Type conversion based on the default's type
            default = self.DEFAULT_CONFIG[section][key]
            if isinstance(default, bool):
                value = value.lower() in ('true', '1', 'yes', 'on')
            elif isinstance(default, int):
                try:
                    value = int(value)
                except ValueError:
                    print(f"⚠️  Invalid integer value for {env_var}: {value}")
                    continue
            elif isinstance(default, float):
                try:
                    value = float(value)
                except ValueError:
                    print(f"⚠️  Invalid float value for {env_var}: {value}")
                    continue

            config.setdefault(section, {})[key] = value
            print(f"🔧 Override from {env_var}: {section}.{key} = {value}")

        return config

    def get(self, section: str, key: str = None, default=None) -> Any:
        """Get configuration value"""
        if key is None:
            return self.config.get(section, default)
        return self.config.get(section, {}).get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set configuration value"""
        if section not in self.config:
            self.config[section] = {}
        self.config[section][key] = value

    def validate(self) -> None:
        """
        Check the configuration for invalid values.

        Raises:
            ConfigError: on the first invalid value found
        """
        for key in ("width", "height", "fps"):
            value = self.get("camera", key)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"camera {key} must be a positive integer, got {value!r}")

        smoothing = self.get("tracking", "smoothing_factor")
        if not isinstance(smoothing, (int, float)) or isinstance(smoothing, bool) or not 0.0 <= smoothing <= 1.0:
            raise ConfigError(f"smoothing factor must be between 0 and 1, got {smoothing!r}")

        for section in ("vmc", "osc"):
            port = self.get(section, "port")
            if not isinstance(port, int) or isinstance(port, bool) or not 0 < port <= 65535:
                raise ConfigError(f"{section.upper()} port must be between 1 and 65535, got {port!r}")

    def save(self) -> None:
        """Save current configuration to file"""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
            print(f"💾 Configuration saved to {self.config_file}")
        except IOError as e:
            print(f"❌ Failed to save config file: {e}")

    def create_default_config_file(self) -> None:
        """Create a default configuration file"""
        if not os.path.exists(self.config_file):
            self.config = copy.deepcopy(self.DEFAULT_CONFIG)
            self.save()
            print(f"📝 Created default config file: {self.config_file}")
        else:
            print(f"📄 Config file already exists: {self.config_file}")

    def print_config(self) -> None:
        """Print current configuration"""
        print("📋 Current Configuration:")
        print(json.dumps(self.config, indent=2))


_config = None


def get_config() -> Config:
    """Get the global configuration instance, loading it on first use"""
    global _config
    if _config is None:
        _config = Config()
    return _config
