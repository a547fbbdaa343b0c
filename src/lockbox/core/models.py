"""
Data models for password generation and vault entries
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional
import time
import uuid


@dataclass
class GeneratorOptions:
    """Options for :func:`lockbox.security.generator.generate_password`."""

    length: int = 16
    upper: bool = True
    lower: bool = True
    digits: bool = True
    symbols: bool = True
    exclude_similar: bool = False
    custom_chars: Optional[str] = None

    def __post_init__(self):
        if self.length < 0:
            raise ValueError(f"length must be >= 0, got {self.length}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratorOptions":
        # unknown keys are ignored; missing keys take the defaults
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


def _now() -> int:
    return int(time.time())


@dataclass
class VaultEntry:
    """
    One credential record. The security layer never looks inside;
    it only sees the serialized list of entries as bytes.
    """

    id: str
    title: str
    username: str
    password: str = field(repr=False)
    url: Optional[str] = None
    notes: Optional[str] = None
    created_at: int = field(default_factory=_now)
    modified_at: int = field(default_factory=_now)

    @classmethod
    def create(
        cls,
        title: str,
        username: str,
        password: str,
        url: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "VaultEntry":
        now = _now()
        return cls(
            id=str(uuid.uuid4()),
            title=title,
            username=username,
            password=password,
            url=url,
            notes=notes,
            created_at=now,
            modified_at=now,
        )

    def touch(self) -> None:
        self.modified_at = _now()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultEntry":
        """
        Rebuild an entry from its dict form.

        Raises KeyError if a required field is missing and TypeError if
        ``data`` is not a mapping.
        """
        return cls(
            id=data["id"],
            title=data["title"],
            username=data["username"],
            password=data["password"],
            url=data.get("url"),
            notes=data.get("notes"),
            created_at=int(data["created_at"]),
            modified_at=int(data["modified_at"]),
        )
