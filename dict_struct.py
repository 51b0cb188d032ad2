# Registry structures for RADIUS dictionary grammars

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set, Tuple


class DictionaryError(Exception):
    pass


class IncludeError(DictionaryError):
    """A grammar file could not be read."""


class ScopeError(DictionaryError):
    """BEGIN/END scope directives do not match (strict mode only)."""


class GenerationError(DictionaryError):
    """A single artifact could not be produced."""


class ConfigError(DictionaryError):
    pass


@dataclass
class AttrValueDescriptor:
    number: str
    names: List[str] = field(default_factory=list)

    def add_name(self, name: str) -> None:
        if name not in self.names:
            self.names.append(name)

    @property
    def canonical_name(self) -> str:
        # the last alias defined wins for number -> name lookups
        return self.names[-1]


@dataclass
class AttributeDescriptor:
    name: str
    number: str                  # as written: "12" or "0x0c"
    type: str                    # "string", "integer", "ipaddr", ...
    extra: Optional[str] = None  # e.g. "encrypt=1"
    vendor: Optional[str] = None
    values: Optional[Dict[str, AttrValueDescriptor]] = None
    sub_attributes: Optional[Dict[str, "AttributeDescriptor"]] = None

    def add_value(self, name: str, number: str) -> None:
        if self.values is None:
            self.values = {}
        existing = self.values.get(number)
        if existing is None:
            self.values[number] = AttrValueDescriptor(number=number, names=[name])
        else:
            existing.add_name(name)

    def add_sub_attribute(self, child: "AttributeDescriptor") -> None:
        if self.sub_attributes is None:
            self.sub_attributes = {}
        self.sub_attributes[child.name] = child


@dataclass
class VendorDescriptor:
    name: str
    number: str
    namespace: str               # dotted path, e.g. "my.dictionary.vsa_cisco"
    extra: Optional[str] = None
    attributes: Dict[str, AttributeDescriptor] = field(default_factory=dict)

    @property
    def format_override(self) -> Optional[str]:
        if self.extra is not None and self.extra.startswith("format="):
            return self.extra[len("format="):]
        return None


# -----------------------------
# Frozen snapshot handed to the generator

def _freeze_attribute(desc: AttributeDescriptor) -> AttributeDescriptor:
    values = None
    if desc.values is not None:
        values = MappingProxyType({
            num: AttrValueDescriptor(number=v.number, names=tuple(v.names))  # type: ignore[arg-type]
            for num, v in desc.values.items()
        })
    subs = None
    if desc.sub_attributes is not None:
        subs = MappingProxyType({
            name: _freeze_attribute(child) for name, child in desc.sub_attributes.items()
        })
    return AttributeDescriptor(
        name=desc.name,
        number=desc.number,
        type=desc.type,
        extra=desc.extra,
        vendor=desc.vendor,
        values=values,  # type: ignore[arg-type]
        sub_attributes=subs,  # type: ignore[arg-type]
    )


@dataclass(frozen=True)
class Registry:
    attributes: Mapping[str, AttributeDescriptor]
    vendors: Mapping[str, VendorDescriptor]

    def vendor(self, name: Optional[str]) -> Optional[VendorDescriptor]:
        if name is None:
            return None
        return self.vendors.get(name)

    def iter_attributes(self):
        """Yield every attribute, top-level first, then per vendor, children after their parent."""
        def walk(attrs: Mapping[str, AttributeDescriptor]):
            for desc in attrs.values():
                yield desc
                if desc.sub_attributes:
                    yield from walk(desc.sub_attributes)

        yield from walk(self.attributes)
        for vdesc in self.vendors.values():
            yield from walk(vdesc.attributes)


@dataclass
class RegistryBuilder:
    """
    Mutable registry state owned by the parser.

    The scope markers are plain "current" pointers, not stacks: a second
    BEGIN-VENDOR before END-VENDOR simply replaces the open vendor.
    """
    attributes: Dict[str, AttributeDescriptor] = field(default_factory=dict)
    vendors: Dict[str, VendorDescriptor] = field(default_factory=dict)
    seen_names: Set[str] = field(default_factory=set)
    current_vendor: Optional[str] = None
    current_tlv: Optional[str] = None

    def has_seen(self, name: str) -> bool:
        return name.lower() in self.seen_names

    def mark_seen(self, name: str) -> None:
        self.seen_names.add(name.lower())

    def open_vendor(self) -> Optional[VendorDescriptor]:
        if self.current_vendor is None:
            return None
        return self.vendors.get(self.current_vendor)

    def resolve_value_target(self, attr_name: str) -> Optional[AttributeDescriptor]:
        desc = self.attributes.get(attr_name)
        if desc is None:
            vdesc = self.open_vendor()
            if vdesc is not None:
                desc = vdesc.attributes.get(attr_name)
        return desc

    def freeze(self) -> Registry:
        attrs = MappingProxyType({
            name: _freeze_attribute(desc) for name, desc in self.attributes.items()
        })
        vendors: Dict[str, VendorDescriptor] = {}
        for name, vdesc in self.vendors.items():
            vendors[name] = VendorDescriptor(
                name=vdesc.name,
                number=vdesc.number,
                namespace=vdesc.namespace,
                extra=vdesc.extra,
                attributes=MappingProxyType({  # type: ignore[arg-type]
                    a: _freeze_attribute(d) for a, d in vdesc.attributes.items()
                }),
            )
        return Registry(attributes=attrs, vendors=MappingProxyType(vendors))


def value_aliases(values: Mapping[str, AttrValueDescriptor]) -> List[Tuple[str, str]]:
    """Flatten an enumeration map into (alias, number) pairs in declaration order."""
    out: List[Tuple[str, str]] = []
    for v in values.values():
        for name in v.names:
            out.append((name, v.number))
    return out
