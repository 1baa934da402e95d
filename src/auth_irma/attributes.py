"""
Mapping between logical attribute names and IRMA attribute identifiers.

A logical attribute (``email``, ``fullname``, ...) is satisfied by any one of a
configured set of IRMA attribute identifiers. A request for a list of logical
attributes becomes a condiscon: one disjunction per logical attribute, in
request order, each offering single-attribute conjunctions.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence

from .exceptions import ConfigurationError, DuplicateAttribute, UnknownAttribute

# Outer conjunction of disjunctions of inner conjunctions of identifiers
ConDisCon = list[list[list[str]]]


class AttributeMapper:
    """Read-only mapping from logical attribute names to IRMA identifiers."""

    def __init__(self, mapping: Mapping[str, Sequence[str]]) -> None:
        self._mapping: dict[str, tuple[str, ...]] = {}
        for name, identifiers in mapping.items():
            if not identifiers:
                msg = f"Attribute {name} has no IRMA attributes configured"
                raise ConfigurationError(msg)
            self._mapping[name] = tuple(identifiers)

    def __contains__(self, name: object) -> bool:
        return name in self._mapping

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def identifiers(self, name: str) -> tuple[str, ...]:
        """Return the acceptable identifiers for ``name``, failing closed."""
        try:
            return self._mapping[name]
        except KeyError:
            raise UnknownAttribute(name) from None

    def map_attributes(self, attributes: Sequence[str]) -> ConDisCon:
        """
        Build the IRMA disclosure structure for the requested attributes.

        The result holds one disjunction per requested attribute, in request
        order. Disclosed groups are later matched back to names by position.

        Raises:
            UnknownAttribute: For the first name without configured identifiers
            DuplicateAttribute: For the first name requested twice
        """
        seen: set[str] = set()
        for attribute in attributes:
            if attribute in seen:
                raise DuplicateAttribute(attribute)
            seen.add(attribute)

        return [
            [[identifier] for identifier in self.identifiers(attribute)]
            for attribute in attributes
        ]
