import configparser
import os
import shlex

DEFAULT_LOCATIONS = [
    os.path.join(os.getcwd(), ".px.conf"),
    os.path.expanduser("~/.config/px/px.conf"),
    "/etc/px/px.conf",
]

DEFAULTS = {
    "workspace": {
        "bnd_workspace": ".",
        "eclipse_workspace": "../../eclipse",
    },
    "catalog": {
        "descriptor": "bnd.bnd",
        "overlay": "bnd.overrides",
        "alias_key": "Bundle-SymbolicName",
        "build_key": "-buildpath",
        "test_key": "-testpath",
        "unresolved": "lenient",
        "collisions": "last-wins",
    },
}


class ConfigError(Exception):
    pass


class PxConfig:
    def __init__(self, locations=None, required=False):
        if locations is None:
            env = os.environ.get("PX_CONFIG")
            locations = [env] if env else DEFAULT_LOCATIONS
        self.locations = locations
        self.required = required
        self.config = configparser.ConfigParser(interpolation=None)
        self.loaded_from = None
        self.reload()

    def reload(self):
        """
        (Re)load the first config file found. Defaults apply when none exists,
        unless the config is required.
        """
        self.config = configparser.ConfigParser(interpolation=None)
        self.config.read_dict(DEFAULTS)
        self.loaded_from = None
        for path in self.locations:
            if path and os.path.isfile(path):
                try:
                    self.config.read(path, encoding="utf-8")
                except (configparser.Error, UnicodeDecodeError) as e:
                    raise ConfigError(f"Invalid configuration file {path}: {e}")
                self.loaded_from = path
                return
        if self.required:
            raise ConfigError(f"No configuration file found at: {', '.join(p for p in self.locations if p)}")

    def get(self, section, option, fallback=None):
        try:
            return self.config.get(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def getboolean(self, section, option, fallback=False):
        try:
            return self.config.getboolean(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getint(self, section, option, fallback=0):
        try:
            return self.config.getint(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getlist(self, section, option, fallback=None, delimiter=","):
        raw = self.get(section, option, fallback="")
        if raw:
            return [item.strip() for item in raw.split(delimiter) if item.strip()]
        return fallback or []

    def getcommand(self, section, option):
        """Shell-split a command line stored as a single string."""
        raw = self.get(section, option, fallback="")
        if not raw or not raw.strip():
            return None
        return shlex.split(raw)

    def getchoice(self, section, option, choices, fallback):
        value = (self.get(section, option, fallback=fallback) or fallback).strip().lower()
        if value not in choices:
            raise ConfigError(
                f"Invalid value '{value}' for [{section}] {option}; expected one of: {', '.join(choices)}"
            )
        return value

    def __getitem__(self, section):
        if section in self.config:
            return dict(self.config[section])
        raise KeyError(f"Section '{section}' not found.")

    def __contains__(self, section):
        return section in self.config


# Default global instance for the other modules
config = PxConfig()
