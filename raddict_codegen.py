# Python source generation for a parsed RADIUS dictionary registry

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set, Tuple

from dict_struct import (
    AttributeDescriptor,
    GenerationError,
    Registry,
    VendorDescriptor,
    value_aliases,
)
from raddict_config import CompilerConfig
from raddict_encoding import (
    NAMED_VALUE,
    VSA_ATTRIBUTE_TYPE,
    ValueKind,
    nested_registration_key,
    nested_vsa_type,
    parse_number,
    python_identifier,
    sanitize,
    select_shape,
    select_value_kind,
    vsa_type,
)

logger = logging.getLogger(__name__)

ATTRIBUTE_LOADER = "AttributeDictionaryImpl"
VENDOR_LOADER = "VSADictionaryImpl"
CLASS_PREFIX = "Attr_"

# class members an enumeration constant must not shadow
_RESERVED_MEMBERS = {
    "NAME", "TYPE", "VENDOR_ID", "VSA_TYPE", "PARENT_TYPE",
    "NamedValueMap", "value_map", "setup",
}


# -----------------------------
# Helpers

def _generation_timestamp() -> str:
    env = os.getenv("SOURCE_DATE_EPOCH")
    if env is not None:
        try:
            ts = datetime.fromtimestamp(int(env), tz=timezone.utc)
        except (ValueError, OverflowError):
            ts = datetime.now(timezone.utc)
    else:
        ts = datetime.now(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


def _write_text_unix(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))


def class_name_for(desc: AttributeDescriptor) -> str:
    ident = sanitize(desc.name)
    if not ident:
        raise GenerationError(f"Attribute name {desc.name!r} has no usable identifier characters")
    return CLASS_PREFIX + ident


# -----------------------------
# Generation model

@dataclass
class ParentRef:
    class_name: str
    number: int


@dataclass
class AttributeArtifact:
    """Everything needed to render one attribute module."""
    desc: AttributeDescriptor
    class_name: str
    namespace: str
    shape: str
    kind: ValueKind
    number: int
    type_id: int
    attribute_type: int
    vendor: Optional[VendorDescriptor] = None
    vendor_id: Optional[int] = None
    vsa_type: Optional[int] = None
    parent: Optional[ParentRef] = None
    values: List[Tuple[str, int]] = field(default_factory=list)      # (alias, number), every alias
    canonical: List[Tuple[int, str]] = field(default_factory=list)   # (number, last alias)


@dataclass
class LoaderTable:
    """Registrations collected for one loader module."""
    namespace: str
    class_name: str
    vendor: Optional[VendorDescriptor] = None
    numeric: List[Tuple[int, str]] = field(default_factory=list)
    names: List[str] = field(default_factory=list)

    def register(self, key: int, class_name: str) -> None:
        self.numeric.append((key, class_name))
        if class_name not in self.names:
            self.names.append(class_name)


@dataclass
class GenerationReport:
    written: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


# -----------------------------
# Generator

class ArtifactGenerator:
    """
    Walks a frozen Registry and writes one module per attribute plus one
    loader module per namespace level.

    Failures are contained to the artifact being produced: they are logged
    and the walk continues with the next sibling.
    """

    def __init__(self, config: CompilerConfig, timestamp: Optional[str] = None):
        self.config = config
        self.timestamp = timestamp or _generation_timestamp()
        # sanitized identifier -> declared attribute number, filled as attributes are generated
        self.class_numbers: Dict[str, int] = {}
        self.report = GenerationReport()
        self._written_classes: Set[Tuple[str, str]] = set()

    def generate(self, registry: Registry) -> GenerationReport:
        logger.info(
            "Generating %d attributes for %d vendors into %s",
            sum(1 for _ in registry.iter_attributes()), len(registry.vendors), self.config.namespace,
        )
        top = LoaderTable(namespace=self.config.namespace, class_name=ATTRIBUTE_LOADER)
        self._generate_map(registry.attributes, top, registry)
        self._write_loader(top, registry)

        for vdesc in registry.vendors.values():
            table = LoaderTable(namespace=vdesc.namespace, class_name=VENDOR_LOADER, vendor=vdesc)
            self._generate_map(vdesc.attributes, table, registry)
            self._write_loader(table, registry)
        return self.report

    def _generate_map(self, attrs: Mapping[str, AttributeDescriptor], table: LoaderTable, registry: Registry) -> None:
        for desc in attrs.values():
            artifact = self._generate_attribute(desc, table.namespace, registry, parent=None)
            if artifact is not None:
                table.register(artifact.number, artifact.class_name)

            if desc.sub_attributes:
                parent_ref = None
                if artifact is not None:
                    parent_ref = ParentRef(artifact.class_name, artifact.number)
                for child in desc.sub_attributes.values():
                    child_artifact = self._generate_attribute(
                        child, table.namespace, registry, parent=parent_ref, parent_name=desc.name
                    )
                    if child_artifact is not None and artifact is not None:
                        key = nested_registration_key(child_artifact.number, artifact.number)
                        table.register(key, child_artifact.class_name)

            logger.info(desc.name)

    def _generate_attribute(
        self,
        desc: AttributeDescriptor,
        namespace: str,
        registry: Registry,
        parent: Optional[ParentRef],
        parent_name: Optional[str] = None,
    ) -> Optional[AttributeArtifact]:
        try:
            artifact = self.build_artifact(desc, namespace, registry, parent, parent_name)
            text = render_attribute_module(artifact, self.config.runtime_package, self.timestamp)
            path = self.config.namespace_dir(namespace) / f"{artifact.class_name}.py"
            if (namespace, artifact.class_name) in self._written_classes:
                logger.warning("%s overwrites an earlier module %s in %s", desc.name, artifact.class_name, namespace)
            self._ensure_package(namespace)
            _write_text_unix(path, text)
        except (GenerationError, ValueError) as exc:
            logger.error("Skipping attribute %s: %s", desc.name, exc)
            self.report.skipped.append(desc.name)
            return None
        except OSError:
            logger.exception("Could not write attribute %s", desc.name)
            self.report.skipped.append(desc.name)
            return None

        self._written_classes.add((namespace, artifact.class_name))
        self.report.written.append(path)
        return artifact

    def build_artifact(
        self,
        desc: AttributeDescriptor,
        namespace: str,
        registry: Registry,
        parent: Optional[ParentRef] = None,
        parent_name: Optional[str] = None,
    ) -> AttributeArtifact:
        """Compute class name, shape, value kind and numeric ids for one attribute."""
        class_name = class_name_for(desc)
        number = parse_number(desc.number)
        nested = parent_name is not None
        vdesc = registry.vendor(desc.vendor)
        if desc.vendor is not None and vdesc is None:
            raise GenerationError(f"unknown vendor {desc.vendor!r}")

        shape = select_shape(desc, nested=nested, vendor_scoped=vdesc is not None)
        kind = select_value_kind(desc)

        vendor_id: Optional[int] = None
        vsa: Optional[int] = None
        parent_ref: Optional[ParentRef] = None
        if nested:
            parent_ident = sanitize(parent_name or "")
            parent_number = self.class_numbers.get(parent_ident)
            if parent is None or parent_number is None:
                raise GenerationError(f"no generated id for parent {parent_name!r}")
            # TLVs declared outside any vendor pack with vendor number 0
            vendor_id = parse_number(vdesc.number) if vdesc is not None else 0
            vsa = nested_vsa_type(number, parent_number)
            type_id = vsa_type(vendor_id, vsa)
            attribute_type = number
            parent_ref = ParentRef(parent.class_name, parent_number)
        elif vdesc is not None:
            vendor_id = parse_number(vdesc.number)
            vsa = number
            type_id = vsa_type(vendor_id, vsa)
            attribute_type = VSA_ATTRIBUTE_TYPE
        else:
            type_id = number
            attribute_type = number

        values: List[Tuple[str, int]] = []
        canonical: List[Tuple[int, str]] = []
        if desc.values:
            values = [(alias, parse_number(num)) for alias, num in value_aliases(desc.values)]
            for v in desc.values.values():
                canonical.append((parse_number(v.number), v.canonical_name))

        self.class_numbers[sanitize(desc.name)] = number

        return AttributeArtifact(
            desc=desc,
            class_name=class_name,
            namespace=namespace,
            shape=shape,
            kind=kind,
            number=number,
            type_id=type_id,
            attribute_type=attribute_type,
            vendor=vdesc,
            vendor_id=vendor_id,
            vsa_type=vsa,
            parent=parent_ref,
            values=values,
            canonical=canonical,
        )

    def _ensure_package(self, namespace: str) -> None:
        if not self.config.write_init_files:
            return
        parts = namespace.split(".")
        for i in range(1, len(parts) + 1):
            init = self.config.namespace_dir(".".join(parts[:i])) / "__init__.py"
            if not init.exists():
                _write_text_unix(init, _banner(self.timestamp))

    def _write_loader(self, table: LoaderTable, registry: Registry) -> None:
        path = self.config.namespace_dir(table.namespace) / f"{table.class_name}.py"
        try:
            text = render_loader_module(table, registry, self.config.runtime_package, self.timestamp)
            self._ensure_package(table.namespace)
            _write_text_unix(path, text)
        except OSError:
            logger.exception("Could not write loader %s", path)
            return
        self.report.written.append(path)


# -----------------------------
# Rendering

def _banner(timestamp: str) -> str:
    return (
        "# DO NOT EDIT THIS FILE DIRECTLY! - AUTOMATICALLY GENERATED\n"
        f"# Generated by: {__name__}\n"
        f"# Generated on: {timestamp}\n"
    )


def _enum_constants(artifact: AttributeArtifact) -> List[Tuple[str, int]]:
    """One (identifier, number) per distinct sanitized alias, first occurrence wins."""
    seen: Set[str] = set()
    out: List[Tuple[str, int]] = []
    for alias, num in artifact.values:
        ident = python_identifier(alias)
        if not ident or ident in seen:
            continue
        seen.add(ident)
        if ident in _RESERVED_MEMBERS:
            logger.debug("%s: value alias %s clashes with a class member, no constant", artifact.desc.name, alias)
            continue
        out.append((ident, num))
    return out


def render_attribute_module(artifact: AttributeArtifact, runtime_package: str, timestamp: str) -> str:
    desc = artifact.desc
    kind = artifact.kind
    named = kind.class_name == NAMED_VALUE

    out: List[str] = []
    out.append(_banner(timestamp))
    out.append(f"from {runtime_package} import {artifact.shape}")
    out.append(f"from {runtime_package}.value import {kind.class_name}")
    if artifact.parent is not None:
        out.append(f"from .{artifact.parent.class_name} import {artifact.parent.class_name}")
    out.append("")
    out.append("")

    out.append(f"class {artifact.class_name}({artifact.shape}):")
    out.append('    """')
    out.append(f"    Attribute Name: {desc.name}")
    if artifact.vendor_id is None:
        note = " (FreeRADIUS Internal Attribute)" if artifact.number > 255 else ""
        out.append(f"    Attribute Type: {artifact.number}{note}")
    else:
        out.append(f"    Attribute Type: {VSA_ATTRIBUTE_TYPE}")
        out.append(f"    Vendor Id: {artifact.vendor_id}")
        out.append(f"    VSA Type: {artifact.number}")
    out.append(f"    Value Type: {kind.class_name}")
    if artifact.values:
        out.append("")
        out.append("    Possible Values:")
        for alias, num in artifact.values:
            out.append(f"      - {alias} ({num})")
    out.append('    """')
    out.append("")

    out.append(f"    NAME = {desc.name!r}")
    if artifact.parent is not None:
        out.append(f"    VENDOR_ID = {artifact.vendor_id}")
        out.append(f"    PARENT_TYPE = {artifact.parent.number}")
        out.append(f"    VSA_TYPE = ({artifact.number} << 8) | PARENT_TYPE")
        out.append("    TYPE = ((VENDOR_ID & 0xFFFF) << 16) | VSA_TYPE")
    elif artifact.vendor_id is not None:
        out.append(f"    VENDOR_ID = {artifact.vendor_id}")
        out.append(f"    VSA_TYPE = {artifact.vsa_type}")
        out.append("    TYPE = ((VENDOR_ID & 0xFFFF) << 16) | VSA_TYPE")
    else:
        out.append(f"    TYPE = {artifact.type_id}")
    out.append("")

    constants = _enum_constants(artifact)
    if constants:
        for ident, num in constants:
            out.append(f"    {ident} = {num}")
        out.append("")

    if named:
        out.extend(_render_named_value_map(artifact))

    out.append("    def setup(self):")
    out.append("        self.attribute_name = self.NAME")
    out.append(f"        self.attribute_type = {artifact.attribute_type}")
    if artifact.parent is not None:
        out.append(f"        self.set_parent_class({artifact.parent.class_name})")
    if artifact.vendor_id is not None:
        out.append("        self.vendor_id = self.VENDOR_ID")
        out.append("        self.vsa_attribute_type = self.VSA_TYPE")
    if artifact.vendor is not None and artifact.vendor.format_override is not None:
        out.append(f"        self.set_format({artifact.vendor.format_override!r})")
    out.append(f"        self.attribute_value = {_value_constructor(artifact)}")
    if kind.is_integer and kind.width < 4:
        out.append(f"        self.attribute_value.set_length({kind.width})")
    out.append("")
    out.append("    def __init__(self, value=None):")
    out.append("        super().__init__()")
    out.append("        self.setup()")
    out.append("        if value is not None:")
    out.append("            self.set_value(value)")
    out.append("")
    return "\n".join(out)


def _value_constructor(artifact: AttributeArtifact) -> str:
    name = artifact.kind.class_name
    if name == NAMED_VALUE:
        return "NamedValue(type(self)._named_value_map())"
    if name == "TLVValue":
        vendor_id = "self.VENDOR_ID" if artifact.vendor_id is not None else "0"
        vsa = "self.VSA_TYPE" if artifact.vsa_type is not None else "self.TYPE"
        return f"TLVValue({vendor_id}, {vsa}, self.get_sub_attributes())"
    return f"{name}()"


def _render_named_value_map(artifact: AttributeArtifact) -> List[str]:
    out: List[str] = []
    known = ", ".join(str(num) for num, _ in artifact.canonical)
    if len(artifact.canonical) == 1:
        known += ","
    out.append("    class NamedValueMap(NamedValue.NamedValueMap):")
    out.append(f"        KNOWN_VALUES = ({known})")
    out.append("        NAMES = {")
    for alias, num in artifact.values:
        out.append(f"            {alias!r}: {num},")
    out.append("        }")
    out.append("        VALUES = {")
    for num, alias in artifact.canonical:
        out.append(f"            {num}: {alias!r},")
    out.append("        }")
    out.append("")
    out.append("        def get_known_values(self):")
    out.append("            return self.KNOWN_VALUES")
    out.append("")
    out.append("        def get_named_value(self, key):")
    out.append("            if isinstance(key, str):")
    out.append("                return self.NAMES.get(key)")
    out.append("            return self.VALUES.get(key)")
    out.append("")
    out.append("    value_map = None")
    out.append("")
    out.append("    @classmethod")
    out.append("    def _named_value_map(cls):")
    out.append("        if cls.value_map is None:")
    out.append("            cls.value_map = cls.NamedValueMap()")
    out.append("        return cls.value_map")
    out.append("")
    return out


def _vendor_alias(vdesc: VendorDescriptor) -> str:
    # vendor names can sanitize alike; the number cannot
    return f"Vendor_{sanitize(vdesc.number)}_{sanitize(vdesc.name)}"


def _vendor_codes(registry: Registry) -> List[Tuple[int, VendorDescriptor]]:
    codes: List[Tuple[int, VendorDescriptor]] = []
    for vdesc in registry.vendors.values():
        try:
            codes.append((parse_number(vdesc.number), vdesc))
        except ValueError as exc:
            logger.error("Skipping vendor code for %s: %s", vdesc.name, exc)
    return codes


def render_loader_module(table: LoaderTable, registry: Registry, runtime_package: str, timestamp: str) -> str:
    top_level = table.vendor is None
    base = "AttributeDictionary" if top_level else "VSADictionary"

    vendor_codes = _vendor_codes(registry) if top_level else []

    out: List[str] = []
    out.append(_banner(timestamp))
    out.append(f"from {runtime_package} import {base}")
    for _, vdesc in vendor_codes:
        out.append(f"from {vdesc.namespace}.{VENDOR_LOADER} import {VENDOR_LOADER} as {_vendor_alias(vdesc)}")
    for class_name in table.names:
        out.append(f"from .{class_name} import {class_name}")
    out.append("")
    out.append("")
    out.append(f"class {table.class_name}({base}):")
    out.append(f'    """Dictionary for namespace {table.namespace}"""')
    out.append("")

    if top_level:
        out.append("    def load_vendor_codes(self, map):")
        if not vendor_codes:
            out.append("        pass")
        for number, vdesc in vendor_codes:
            out.append(f"        map[{number}] = {_vendor_alias(vdesc)}")
        out.append("")
    else:
        out.append("    def get_vendor_name(self):")
        out.append(f"        return {table.vendor.name!r}")
        out.append("")

    out.append("    def load_attributes(self, map):")
    if not table.numeric:
        out.append("        pass")
    for key, class_name in table.numeric:
        out.append(f"        map[{key}] = {class_name}")
    out.append("")
    out.append("    def load_attributes_names(self, map):")
    if not table.names:
        out.append("        pass")
    for class_name in table.names:
        out.append(f"        map[{class_name}.NAME] = {class_name}")
    out.append("")
    return "\n".join(out)


# -----------------------------
# Public entry

def generate_sources(registry: Registry, config: CompilerConfig, timestamp: Optional[str] = None) -> GenerationReport:
    return ArtifactGenerator(config, timestamp=timestamp).generate(registry)
