"""Hot-reloadable configuration store.

Holds the mapping of account identifiers to their attribute sets, loaded from a YAML file.
Readers always see one complete, immutable Snapshot; reloads build a fresh Snapshot off the
event loop and swap the reference in a single assignment.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from time import time
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

import sentry_sdk
import yaml

logger = logging.getLogger(__name__)

DEFAULT_ENTRY = "default"
"""Top-level key holding settings that are not an account."""

DEFAULT_USER_KEY = "user"
"""Key under the default entry naming the default subject."""

ACCT_PREFIX = "acct:"

AttributeSet = Mapping[str, str]
ResourceTable = Mapping[str, AttributeSet]


class ConfigErrorKind(IntEnum):
    """Reason a configuration source could not be loaded."""

    not_found = 1
    malformed = 2


class ConfigError(Exception):
    """
    Raised when the configuration source cannot be turned into a Snapshot.

    Fatal at startup. After startup a failed reload is logged and the previous snapshot
    stays active.
    """

    kind: ConfigErrorKind

    def __init__(self, path: Union[str, Path], message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = str(path)
        self.message = message


class ConfigNotFoundError(ConfigError):
    """The configuration source is missing or unreadable."""

    kind = ConfigErrorKind.not_found


class ConfigMalformedError(ConfigError):
    """The configuration source could not be deserialized into resource attributes."""

    kind = ConfigErrorKind.malformed


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable point-in-time view of the configuration.

    Attributes:
        resources: Normalized identifier (no `acct:` prefix) to its attributes
        default_subject: Identifier used when a query names no resource
        loaded_at: Epoch seconds at which the snapshot was built
    """

    resources: ResourceTable = field(default_factory=lambda: MappingProxyType({}))
    default_subject: Optional[str] = None
    loaded_at: float = 0.0

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    def get(self, identifier: str) -> Optional[AttributeSet]:
        return self.resources.get(identifier)

    def __len__(self) -> int:
        return len(self.resources)


def _coerce_value(identifier: str, name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple, set)):
        raise ValueError(
            f"attribute {name!r} of {identifier!r} must be a string, not {type(value).__name__}"
        )
    return str(value)


def build_snapshot(raw: Any, loaded_at: Optional[float] = None) -> Snapshot:
    """
    Build a Snapshot from a deserialized configuration mapping.

    The `default` entry is removed from the resource table; its `user` value (if any and
    non-empty) becomes the default subject. Keys lose a leading `acct:` so they match
    normalized queries. Scalar attribute values are coerced to strings, null to "".

    Args:
        raw: Deserialized configuration, expected to be a mapping of mappings

    Returns:
        Snapshot: A new snapshot; nothing else is mutated

    Raises:
        ValueError: If the structure is not a mapping of attribute mappings
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(
            f"configuration must be a mapping of resources, not {type(raw).__name__}"
        )

    resources = {}
    default_subject: Optional[str] = None

    for key, entry in raw.items():
        identifier = str(key)
        if entry is None:
            entry = {}
        if not isinstance(entry, dict):
            raise ValueError(f"entry {identifier!r} must be a mapping of attributes")

        attributes = {
            str(name): _coerce_value(identifier, str(name), value)
            for name, value in entry.items()
        }

        if identifier == DEFAULT_ENTRY:
            default_subject = attributes.get(DEFAULT_USER_KEY) or None
            continue

        resources[identifier.removeprefix(ACCT_PREFIX)] = MappingProxyType(attributes)

    return Snapshot(
        resources=MappingProxyType(resources),
        default_subject=default_subject,
        loaded_at=time() if loaded_at is None else loaded_at,
    )


class ConfigStore:
    """
    Owns the active configuration Snapshot.

    There is a single writer (the reload task) and any number of readers (request
    handlers). Reloads are serialized with an asyncio lock; readers never take the lock and
    only ever dereference the current snapshot.
    """

    def __init__(
        self, path: Union[str, Path], snapshot: Optional[Snapshot] = None
    ) -> None:
        self._path = Path(path).expanduser()
        self._snapshot = snapshot if snapshot is not None else Snapshot.empty()
        self._reload_lock = asyncio.Lock()
        self.reload_count = 0
        self.failure_count = 0
        self.last_error: Optional[ConfigError] = None

    @classmethod
    async def open(cls, path: Union[str, Path]) -> "ConfigStore":
        """
        Create a store and perform the startup load.

        Raises:
            ConfigError: If the initial configuration cannot be loaded
        """
        store = cls(path)
        store._snapshot = await asyncio.to_thread(store.load)
        logger.info(
            "Loaded configuration from %s (%d resources)", store.path, len(store._snapshot)
        )
        return store

    @property
    def path(self) -> Path:
        return self._path

    def current(self) -> Snapshot:
        return self._snapshot

    def load(self) -> Snapshot:
        """
        Read and deserialize the source into a new Snapshot without touching the store.

        Raises:
            ConfigNotFoundError: If the file cannot be read
            ConfigMalformedError: If the file is not valid YAML or has the wrong shape
        """
        try:
            with open(self._path, encoding="utf-8") as fd:
                raw = yaml.safe_load(fd)
        except OSError as e:
            raise ConfigNotFoundError(self._path, e.strerror or str(e)) from e
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigMalformedError(self._path, str(e)) from e

        try:
            return build_snapshot(raw)
        except ValueError as e:
            raise ConfigMalformedError(self._path, str(e)) from e

    async def reload(self) -> bool:
        """
        Load the source and swap in the result.

        Best-effort: a ConfigError is logged and reported, and the prior snapshot remains
        active. Concurrent calls run one after the other.

        Returns:
            bool: True if a new snapshot was installed
        """
        async with self._reload_lock:
            try:
                snapshot = await asyncio.to_thread(self.load)
            except ConfigError as e:
                self.failure_count += 1
                self.last_error = e
                logger.warning(
                    "Configuration reload failed, keeping previous snapshot: %s", e
                )
                sentry_sdk.capture_exception(e)
                return False

            self._snapshot = snapshot
            self.reload_count += 1
            self.last_error = None
            logger.info(
                "Reloaded configuration from %s (%d resources)", self._path, len(snapshot)
            )
            return True
