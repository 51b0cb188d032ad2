import pytest

from dict_struct import AttributeDescriptor
from raddict_encoding import (
    nested_registration_key,
    nested_vsa_type,
    parse_number,
    python_identifier,
    sanitize,
    select_shape,
    select_value_kind,
    vendor_namespace,
    vsa_type,
)


def test_sanitize_replaces_hyphens() -> None:
    assert sanitize("NAS-Port-Type") == "NAS_Port_Type"


def test_sanitize_prefixes_leading_digit() -> None:
    assert sanitize("3GPP-Foo") == "_3GPP_Foo"


def test_sanitize_strips_illegal_characters() -> None:
    assert sanitize("Foo.Bar/Baz+") == "FooBarBaz"
    assert sanitize("...") == ""


def test_python_identifier_escapes_keywords() -> None:
    assert python_identifier("None") == "None_"
    assert python_identifier("if") == "if_"
    assert python_identifier("Login-User") == "Login_User"


def test_parse_number_decimal_and_hex() -> None:
    assert parse_number("12") == 12
    assert parse_number("0x1A") == 26
    assert parse_number("0X10") == 16
    with pytest.raises(ValueError):
        parse_number("twelve")


def test_vendor_packing_masks_vendor_to_16_bits() -> None:
    assert vsa_type(9, 1) == (9 << 16) | 1
    assert vsa_type(0x12345, 7) == (0x2345 << 16) | 7


def test_nested_packing() -> None:
    assert nested_vsa_type(2, 5) == (2 << 8) | 5
    assert vsa_type(9, nested_vsa_type(2, 5)) == (9 << 16) | ((2 << 8) | 5)
    # registration key keeps only the low byte of the parent number
    assert nested_registration_key(2, 0x105) == (2 << 8) | 5


def test_vendor_namespace() -> None:
    assert vendor_namespace("my.dict", "Cisco") == "my.dict.vsa_cisco"
    assert vendor_namespace("my.dict", "Alcatel-Lucent") == "my.dict.vsa_alcatel.lucent"
    assert vendor_namespace("my.dict", "Foo-3Com") == "my.dict.vsa_foo._3com"
    assert vendor_namespace("my.dict", "Foo-If") == "my.dict.vsa_foo.if_"
    assert vendor_namespace("my.dict", "Class-Lambda") == "my.dict.vsa_class.lambda_"


@pytest.mark.parametrize(
    "type_tag, class_name, width, signed",
    [
        ("string", "StringValue", 4, False),
        ("integer", "IntegerValue", 4, False),
        ("signed", "SignedValue", 4, True),
        ("byte", "IntegerValue", 1, False),
        ("short", "IntegerValue", 2, False),
        ("date", "DateValue", 4, False),
        ("ipaddr", "IPAddrValue", 4, False),
        ("ipv6addr", "IPv6AddrValue", 4, False),
        ("combo-ip", "ComboIPAddrValue", 4, False),
        ("octets", "OctetsValue", 4, False),
        ("ipv6prefix", "OctetsValue", 4, False),
    ],
)
def test_value_kind_table(type_tag: str, class_name: str, width: int, signed: bool) -> None:
    kind = select_value_kind(AttributeDescriptor(name="A", number="1", type=type_tag))
    assert kind.class_name == class_name
    assert kind.width == width
    assert kind.signed is signed


def test_encrypted_string() -> None:
    desc = AttributeDescriptor(name="User-Password", number="2", type="string", extra="encrypt=1")
    assert select_value_kind(desc).class_name == "EncryptedStringValue"


def test_enumeration_forces_named_value_and_keeps_width() -> None:
    desc = AttributeDescriptor(name="A", number="1", type="short")
    desc.add_value("One", "1")
    kind = select_value_kind(desc)
    assert kind.class_name == "NamedValue"
    assert kind.width == 2


def test_sub_attributes_force_tlv_value() -> None:
    desc = AttributeDescriptor(name="P", number="5", type="integer")
    desc.add_value("One", "1")
    desc.add_sub_attribute(AttributeDescriptor(name="C", number="2", type="integer"))
    assert select_value_kind(desc).class_name == "TLVValue"


def test_shapes() -> None:
    leaf = AttributeDescriptor(name="A", number="1", type="integer")
    parent = AttributeDescriptor(name="P", number="5", type="tlv")
    parent.add_sub_attribute(AttributeDescriptor(name="C", number="2", type="integer"))

    assert select_shape(leaf, nested=False, vendor_scoped=False) == "RadiusAttribute"
    assert select_shape(leaf, nested=False, vendor_scoped=True) == "VSAttribute"
    assert select_shape(parent, nested=False, vendor_scoped=True) == "VSAWithSubAttributes"
    assert select_shape(leaf, nested=True, vendor_scoped=True) == "SubAttribute"
