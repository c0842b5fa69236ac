"""Registration records and their canonical ``/name/version/host/port`` ids."""

import json
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Mapping, Union

from .errors import RegistrationError


# /name/version/host/port -- no empty segments, no slashes inside a segment
_ID_RE = re.compile(r"^/[^/]+/[^/]+/[^/]+/\d+$")


@dataclass
class Registration:
    """One live service instance."""
    name: str
    version: str
    host: str
    port: int
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"/{self.name}/{self.version}/{self.host}/{self.port}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serialisable dictionary."""
        data = asdict(self)
        data["id"] = self.id
        return data

    def stringify(self) -> str:
        return stringify(self)


def _check_segment(field_name: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise RegistrationError(f"registration {field_name} must be a non-empty string")
    if "/" in value:
        raise RegistrationError(f"registration {field_name} may not contain '/': {value!r}")
    return value


def _check_port(value: Any) -> int:
    if isinstance(value, bool):
        raise RegistrationError(f"registration port must be an integer, got {value!r}")
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise RegistrationError(f"registration port must be an integer, got {value!r}") from None
    if not 0 < port < 65536:
        raise RegistrationError(f"registration port out of range: {port}")
    return port


def create(raw: Union[Registration, Mapping[str, Any]]) -> Registration:
    """Build a validated Registration from a Registration or a plain mapping.

    Raises RegistrationError when a required field is missing or malformed.
    A stray ``id`` key in *raw* is ignored; the id is always derived.
    """
    if isinstance(raw, Registration):
        raw = asdict(raw)
    if not isinstance(raw, Mapping):
        raise RegistrationError(f"cannot build a registration from {type(raw).__name__}")

    for required in ("name", "version", "host", "port"):
        if raw.get(required) is None:
            raise RegistrationError(f"registration is missing '{required}'")

    meta = raw.get("meta") or {}
    if not isinstance(meta, Mapping):
        raise RegistrationError("registration meta must be a mapping")

    return Registration(
        name=_check_segment("name", raw["name"]),
        version=_check_segment("version", raw["version"]),
        host=_check_segment("host", raw["host"]),
        port=_check_port(raw["port"]),
        meta=dict(meta),
    )


def stringify(registration: Registration) -> str:
    return json.dumps(registration.to_dict(), sort_keys=True)


def parse(text: Union[str, bytes]) -> Registration:
    """Decode a stored registration; the stored id must match the fields."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise RegistrationError(f"stored registration is not valid JSON: {exc}") from exc
    registration = create(data)
    stored_id = data.get("id") if isinstance(data, dict) else None
    if stored_id is not None and stored_id != registration.id:
        raise RegistrationError(f"stored id {stored_id!r} does not match {registration.id!r}")
    return registration


def is_registration_id(key: Union[str, bytes, None]) -> bool:
    if isinstance(key, bytes):
        key = key.decode("utf-8", "replace")
    if not isinstance(key, str):
        return False
    return _ID_RE.match(key) is not None


def prefix_for(name: str | None = None, version: str | None = None) -> str:
    """Key prefix selecting every id, every id under *name*, or under *name*/*version*."""
    if name is None:
        if version is not None:
            raise ValueError("version filter requires a name")
        return "/"
    if version is None:
        return f"/{_check_segment('name', name)}/"
    return f"/{_check_segment('name', name)}/{_check_segment('version', version)}/"
