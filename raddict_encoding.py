# Identifier rules and numeric encodings used by the generator.

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from dict_struct import AttributeDescriptor

# RADIUS attribute number carrying every vendor-specific attribute
VSA_ATTRIBUTE_TYPE = 26

VENDOR_NAMESPACE_PREFIX = "vsa_"

_ILLEGAL_IDENT_RE = re.compile(r"[^A-Za-z0-9_]+")


def sanitize(name: str) -> str:
    """
    Turn a free-text dictionary name into a Python identifier.

      NAS-Port-Type  -> NAS_Port_Type
      3GPP-IMSI      -> _3GPP_IMSI
      Foo.Bar/Baz    -> FooBarBaz
    """
    s = name.replace("-", "_")
    s = _ILLEGAL_IDENT_RE.sub("", s)
    if s and s[0].isdigit():
        s = "_" + s
    return s


def python_identifier(name: str) -> str:
    """sanitize(), plus a trailing underscore for Python keywords ("None" -> "None_")."""
    ident = sanitize(name)
    if keyword.iskeyword(ident):
        ident += "_"
    return ident


def parse_number(text: str) -> int:
    """Parse a dictionary number: plain decimal or 0x-prefixed hex."""
    s = text.strip()
    if s.lower().startswith("0x"):
        return int(s[2:], 16)
    if not s.isdigit():
        raise ValueError(f"Not a dictionary number: {text!r}")
    return int(s, 10)


def vendor_namespace(base: str, vendor_name: str) -> str:
    """
    Namespace for a vendor's generated modules.

      ("my.dict", "Cisco")        -> "my.dict.vsa_cisco"
      ("my.dict", "Alcatel-Lucent") -> "my.dict.vsa_alcatel.lucent"
      ("my.dict", "Foo-If")       -> "my.dict.vsa_foo.if_"
    """
    parts = (VENDOR_NAMESPACE_PREFIX + vendor_name.lower()).split("-")
    segments = [python_identifier(p) for p in parts]
    return ".".join([base] + [s for s in segments if s])


def vsa_type(vendor_number: int, vsa: int) -> int:
    return ((vendor_number & 0xFFFF) << 16) | vsa


def nested_vsa_type(child_number: int, parent_number: int) -> int:
    return (child_number << 8) | parent_number


def nested_registration_key(child_number: int, parent_number: int) -> int:
    return (child_number << 8) | (parent_number & 0xFF)


# -----------------------------
# Value representation selection

@dataclass(frozen=True)
class ValueKind:
    class_name: str
    width: int = 4
    signed: bool = False

    @property
    def is_integer(self) -> bool:
        return self.class_name in ("IntegerValue", "SignedValue", "NamedValue")


OCTETS = ValueKind("OctetsValue")
NAMED_VALUE = "NamedValue"
TLV_VALUE = ValueKind("TLVValue")

# first matching prefix wins
_TYPE_TABLE: List[Tuple[str, ValueKind]] = [
    ("string", ValueKind("StringValue")),
    ("integer", ValueKind("IntegerValue", width=4)),
    ("signed", ValueKind("SignedValue", width=4, signed=True)),
    ("byte", ValueKind("IntegerValue", width=1)),
    ("short", ValueKind("IntegerValue", width=2)),
    ("date", ValueKind("DateValue")),
    ("ipaddr", ValueKind("IPAddrValue")),
    ("ipv6addr", ValueKind("IPv6AddrValue")),
    ("combo-ip", ValueKind("ComboIPAddrValue")),
]


def _kind_for_type_tag(type_tag: str, extra: Optional[str]) -> ValueKind:
    tag = type_tag.lower()
    for prefix, kind in _TYPE_TABLE:
        if tag.startswith(prefix):
            if prefix == "string" and extra == "encrypt=1":
                return ValueKind("EncryptedStringValue")
            return kind
    return OCTETS


def select_value_kind(desc: AttributeDescriptor) -> ValueKind:
    """Pick the runtime value class for an attribute."""
    kind = _kind_for_type_tag(desc.type, desc.extra)
    if desc.sub_attributes:
        return TLV_VALUE
    if desc.values:
        # enumerations keep the declared integer width
        return ValueKind(NAMED_VALUE, width=kind.width if kind.is_integer else 4, signed=kind.signed)
    return kind


SUB_ATTRIBUTE = "SubAttribute"
VSA_WITH_SUB_ATTRIBUTES = "VSAWithSubAttributes"
VENDOR_SPECIFIC_ATTRIBUTE = "VSAttribute"
RADIUS_ATTRIBUTE = "RadiusAttribute"


def select_shape(desc: AttributeDescriptor, nested: bool, vendor_scoped: bool) -> str:
    if nested:
        return SUB_ATTRIBUTE
    if desc.sub_attributes:
        return VSA_WITH_SUB_ATTRIBUTES
    if vendor_scoped:
        return VENDOR_SPECIFIC_ATTRIBUTE
    return RADIUS_ATTRIBUTE
