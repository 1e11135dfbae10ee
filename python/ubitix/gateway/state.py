from abc import ABC, abstractmethod
from ipaddress import IPv6Network
from pathlib import Path
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from ubitix.errors import StateStoreError
from ubitix.logging import get_logger
from ubitix.utils.async_utils import readfile, writefile_atomic
from ubitix.utils.modeling import ConfigError, DataFormat, DataValidationError, try_to_parse

from .subnet import Mapping

logger = get_logger(__name__)


class Serializable(ABC):
    """
    An interface for making classes serializable to a dictionary and back.
    """

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError(f"...for class {self.__class__.__name__}")

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Any) -> "Serializable":
        raise NotImplementedError(f"...for class {cls.__name__}")

    @classmethod
    @abstractmethod
    def default(cls) -> "Serializable":
        raise NotImplementedError(f"...for class {cls.__name__}")


def _parse_network(value: Any, object_path: str) -> IPv6Network:
    if not isinstance(value, str):
        raise DataValidationError(f"expected IPv6 network string, got '{value}' with type '{type(value)}'", object_path)
    try:
        return IPv6Network(value)
    except ValueError as e:
        raise DataValidationError(f"failed to parse IPv6 network: {e}", object_path) from e


class GatewayState(Serializable):
    """
    Last delegated prefix together with the mapping allocated for it.

    'prefix' is None until the first prefix is seen.
    """

    def __init__(self, prefix: Optional[IPv6Network] = None, mapping: Optional[Mapping] = None) -> None:
        self.prefix = prefix
        self.mapping: Mapping = dict(mapping) if mapping else {}

    @classmethod
    def default(cls) -> "GatewayState":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix.with_prefixlen if self.prefix is not None else None,
            "mapping": {public.with_prefixlen: private.with_prefixlen for public, private in self.mapping.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "GatewayState":
        if not isinstance(data, dict):
            raise DataValidationError(f"expected a dictionary, got '{type(data)}'", "/")

        raw_prefix = data.get("prefix")
        prefix = _parse_network(raw_prefix, "/prefix") if raw_prefix is not None else None

        raw_mapping = data.get("mapping") or {}
        if not isinstance(raw_mapping, dict):
            raise DataValidationError(f"expected a dictionary, got '{type(raw_mapping)}'", "/mapping")
        mapping: Mapping = {}
        for public, private in raw_mapping.items():
            mapping[_parse_network(public, "/mapping")] = _parse_network(private, f"/mapping/{public}")

        if prefix is None and mapping:
            raise DataValidationError("mapping without a prefix", "/mapping")
        return cls(prefix, mapping)

    def __eq__(self, o: object) -> bool:
        return isinstance(o, GatewayState) and o.prefix == self.prefix and o.mapping == self.mapping

    def __repr__(self) -> str:
        return f"{type(self).__name__}(prefix={self.prefix}, mapping={len(self.mapping)} entries)"


T = TypeVar("T", bound=Serializable)


class FileStore(Generic[T]):
    """
    Persists one serializable object in a YAML file.

    A missing or corrupted file is never an error on load, the default object is returned instead.
    Saving replaces the file atomically.
    """

    def __init__(self, path: Path, kind: Type[T]) -> None:
        self._path = path
        self._kind = kind

    @property
    def path(self) -> Path:
        return self._path

    def check(self) -> None:
        """
        Make sure the file can be created later on.
        """

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StateStoreError(f"failed to create state directory '{self._path.parent}': {e}") from e
        if self._path.is_dir():
            raise StateStoreError(f"state file '{self._path}' is a directory")

    async def load(self) -> T:
        if not self._path.exists():
            logger.info(f"State file '{self._path}' does not exist, starting with a default state")
            return self._kind.default()  # type: ignore[return-value]

        try:
            data = try_to_parse(await readfile(self._path))
            obj = self._kind.from_dict(data)
        except (OSError, UnicodeDecodeError, ConfigError) as e:
            logger.warning(f"Failed to load state file '{self._path}', starting with a default state: {e}")
            return self._kind.default()  # type: ignore[return-value]

        logger.info(f"State loaded from '{self._path}'")
        return obj  # type: ignore[return-value]

    async def save(self, obj: T) -> None:
        try:
            await writefile_atomic(self._path, DataFormat.YAML.dict_dump(obj.to_dict()))
        except OSError as e:
            raise StateStoreError(f"failed to save state file '{self._path}': {e}") from e
        logger.debug(f"State saved to '{self._path}'")
