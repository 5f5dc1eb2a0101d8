"""
Annotation model shared by the resolution layer

A Meaning is the accumulating set of URIs believed to denote one real-world
entity. It only grows while same-as retrieval proceeds, and it records the
outcome of entity existence checks for its URIs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Set


@dataclass
class Meaning:
    """Growable set of equivalent URIs plus entity check state"""
    uris: Set[str] = field(default_factory=set)
    confirmed_uris: Set[str] = field(default_factory=set)
    refuted_uris: Set[str] = field(default_factory=set)

    def __post_init__(self):
        self.uris = {uri for uri in self.uris if uri}

    def add_uri(self, uri: Optional[str]) -> None:
        if uri:
            self.uris.add(uri)

    def add_uris(self, uris: Iterable[Optional[str]]) -> None:
        for uri in uris:
            self.add_uri(uri)

    def contains_uri(self, uri: str) -> bool:
        return uri in self.uris

    def mark_checked(self, uri: str, exists: bool) -> None:
        """Record the result of an existence check for one of the URIs"""
        if exists:
            self.confirmed_uris.add(uri)
            self.refuted_uris.discard(uri)
        elif uri not in self.confirmed_uris:
            self.refuted_uris.add(uri)

    @property
    def exists(self) -> Optional[bool]:
        """
        True if any URI is confirmed to exist, False if URIs were checked
        and none exists, None while unverified.
        """
        if self.confirmed_uris:
            return True
        if self.refuted_uris:
            return False
        return None

    @property
    def unchecked_uris(self) -> Set[str]:
        return self.uris - self.confirmed_uris - self.refuted_uris

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uris": sorted(self.uris),
            "confirmed_uris": sorted(self.confirmed_uris),
            "refuted_uris": sorted(self.refuted_uris),
            "exists": self.exists
        }


class Annotation(Meaning):
    """Document level annotation (a Meaning without a position)"""

    def __init__(self, *uris: Optional[str]):
        super().__init__(uris=set(uri for uri in uris if uri))


class NamedEntity(Annotation):
    """Meaning anchored at a text span"""

    def __init__(self, start_position: int, length: int, *uris: Optional[str]):
        super().__init__(*uris)
        self.start_position = start_position
        self.length = length

    @property
    def end_position(self) -> int:
        return self.start_position + self.length

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "start_position": self.start_position,
            "length": self.length
        })
        return data


class TypedNamedEntity(NamedEntity):
    """Named entity carrying the class URIs reported by an annotator"""

    def __init__(self, start_position: int, length: int, uris: Iterable[str],
                 types: Optional[Iterable[str]] = None):
        super().__init__(start_position, length, *uris)
        self.types: Set[str] = set(types or ())

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["types"] = sorted(self.types)
        return data
