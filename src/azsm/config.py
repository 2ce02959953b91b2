from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

AZSM_DIR = os.path.expanduser(os.getenv("AZSM_HOME", "~/.azsm"))
CONFIG_PATH = os.path.join(AZSM_DIR, "config.json")

# Interval between two polls of a running operation.  An interval of 0 turns
# polling off: mutating calls return as soon as the server accepts them.
DEFAULT_POLLER_INTERVAL = 10.0
DEFAULT_POLLER_TIMEOUT = 20 * 60.0


@dataclass(frozen=True)
class PollingConfig:
    """Interval and overall timeout (both in seconds) for one polling session."""

    interval: float
    timeout: float

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"polling interval must be positive, got {self.interval}")
        if self.timeout < 0:
            raise ValueError(f"polling timeout must not be negative, got {self.timeout}")


# Disk deletion retries every 10 seconds for up to 30 minutes while the disk
# is still reported as attached to a deleted virtual machine.
DEFAULT_DELETE_DISK_POLLING = PollingConfig(interval=10.0, timeout=30 * 60.0)

DEFAULT_RETRY_STATUSES = [409, 500, 503]


@dataclass
class Profile:
    name: str
    subscription_id: str | None = None
    certificate_path: str | None = None
    location: str | None = None
    poller_interval: float = DEFAULT_POLLER_INTERVAL
    poller_timeout: float = DEFAULT_POLLER_TIMEOUT
    retry_max: int = 0
    retry_statuses: list[int] = field(default_factory=lambda: list(DEFAULT_RETRY_STATUSES))
    retry_delay: float = 0.0


@dataclass
class ConfigData:
    default_profile: str | None = None
    profiles: dict[str, Profile] = field(default_factory=dict)


def _secure_path(path: Path) -> None:
    if not path.exists() or os.name == "nt":
        return
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
        if mode & (stat.S_IRWXG | stat.S_IRWXO):
            logger.warning("Adjusted permissions for %s to 0o600", path)
        path.chmod(0o600)
    except PermissionError as exc:
        logger.warning("Unable to enforce secure permissions for %s: %s", path, exc)


class ConfigStore:
    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path) if path else Path(CONFIG_PATH)

    def _ensure(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict[str, Any]:
        self._ensure()
        if not self.path.exists():
            return {"default": None, "profiles": {}}
        with self.path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _write(self, data: dict[str, Any]) -> None:
        self._ensure()
        tmp = self.path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        tmp.replace(self.path)
        _secure_path(self.path)

    def load(self) -> ConfigData:
        raw = self._read()
        profs = {
            name: Profile(name=name, **{k: v for k, v in data.items() if k != "name"})
            for name, data in raw.get("profiles", {}).items()
        }
        return ConfigData(default_profile=raw.get("default"), profiles=profs)

    def save(self, cfg: ConfigData) -> None:
        data = {
            "default": cfg.default_profile,
            "profiles": {name: asdict(profile) for name, profile in cfg.profiles.items()},
        }
        self._write(data)

    def add_or_update_profile(self, profile: Profile, *, set_default: bool = False) -> ConfigData:
        """Persist ``profile`` and optionally set it as default."""

        cfg = self.load()
        cfg.profiles[profile.name] = profile
        if set_default or not cfg.default_profile:
            cfg.default_profile = profile.name
        self.save(cfg)
        return cfg

    def set_default_profile(self, name: str) -> ConfigData:
        """Mark the profile ``name`` as the default profile."""

        cfg = self.load()
        if name not in cfg.profiles:
            raise KeyError(f"Profile '{name}' not found")
        cfg.default_profile = name
        self.save(cfg)
        return cfg

    def delete_profile(self, name: str) -> ConfigData:
        cfg = self.load()
        cfg.profiles.pop(name, None)
        if cfg.default_profile == name:
            cfg.default_profile = None
        self.save(cfg)
        return cfg


def resolve_profile(name: str | None = None, *, store: ConfigStore | None = None) -> Profile:
    """Return the named (or default) profile with environment overrides applied.

    ``AZSM_SUBSCRIPTION_ID``, ``AZSM_CERTIFICATE`` and ``AZSM_LOCATION`` win over
    stored values, so a profile is optional when all three are exported.
    """

    cfg = (store or ConfigStore()).load()
    profile_name = name or cfg.default_profile
    profile = cfg.profiles.get(profile_name) if profile_name else None
    if name and profile is None:
        raise KeyError(f"Profile '{name}' not found")
    if profile is None:
        profile = Profile(name=profile_name or "environment")

    overrides = {
        "subscription_id": os.getenv("AZSM_SUBSCRIPTION_ID"),
        "certificate_path": os.getenv("AZSM_CERTIFICATE"),
        "location": os.getenv("AZSM_LOCATION"),
    }
    for key, value in overrides.items():
        if value:
            setattr(profile, key, value)
    return profile
