# JSON conversion for a parsed dictionary registry

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from dict_struct import AttributeDescriptor, Registry, VendorDescriptor


def _values_to_list(attr: AttributeDescriptor) -> List[Dict[str, Any]]:
    if not attr.values:
        return []
    return [
        {"number": v.number, "names": list(v.names), "canonical": v.canonical_name}
        for v in attr.values.values()
    ]


def _attr_to_dict(attr: AttributeDescriptor) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "name": attr.name,
        "number": attr.number,
        "type": attr.type,
    }
    if attr.extra is not None:
        d["extra"] = attr.extra
    if attr.vendor is not None:
        d["vendor"] = attr.vendor
    values = _values_to_list(attr)
    if values:
        d["values"] = values
    if attr.sub_attributes:
        d["sub_attributes"] = _attrs_to_list(attr.sub_attributes)
    return d


def _attrs_to_list(attrs: Mapping[str, AttributeDescriptor]) -> List[Dict[str, Any]]:
    return [_attr_to_dict(a) for a in attrs.values()]


def _vendor_to_dict(vendor: VendorDescriptor) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "name": vendor.name,
        "number": vendor.number,
        "namespace": vendor.namespace,
    }
    if vendor.extra is not None:
        d["extra"] = vendor.extra
    d["attributes"] = _attrs_to_list(vendor.attributes)
    return d


def registry_to_json_dict(registry: Registry) -> dict:
    """
    Public entry-point: plain dict view of the registry, in declaration order.
    Useful for inspecting what the parser saw before anything is generated.
    """
    return {
        "attributes": _attrs_to_list(registry.attributes),
        "vendors": [_vendor_to_dict(v) for v in registry.vendors.values()],
    }
