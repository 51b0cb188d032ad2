# RADIUS dictionary grammar parser

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dict_struct import (
    AttributeDescriptor,
    IncludeError,
    Registry,
    RegistryBuilder,
    ScopeError,
    VendorDescriptor,
)
from raddict_config import DEFAULT_EXTENSION_DICTIONARY, CompilerConfig
from raddict_encoding import vendor_namespace

logger = logging.getLogger(__name__)

# -----------------------------
# Line tokenization

_SPLIT_RE = re.compile(r"[\t ]+")


@dataclass
class DirectiveLine:
    keyword: str      # first token, upper-cased for matching
    args: List[str]   # remaining tokens, original case
    source: str
    line: int


def tokenize_line(text: str, source: str = "<string>", line: int = 0) -> Optional[DirectiveLine]:
    """
    Split one grammar line into a directive keyword and its arguments.

    Returns None for blank lines and comments:

      "ATTRIBUTE\tUser-Name\t1\tstring"  -> ("ATTRIBUTE", ["User-Name", "1", "string"])
      "# comment"                        -> None
    """
    stripped = text.strip()
    if not stripped or stripped.startswith("#"):
        return None
    parts = [p for p in _SPLIT_RE.split(stripped) if p]
    return DirectiveLine(keyword=parts[0].upper(), args=parts[1:], source=source, line=line)


# -----------------------------
# Parser

class DictionaryParser:
    """
    Reads dictionary grammar files into a RegistryBuilder.

    Directive keywords are case-insensitive; names and values keep their case.
    Lines that lack required tokens are ignored without a report.
    """

    def __init__(self, config: CompilerConfig, builder: Optional[RegistryBuilder] = None):
        self.config = config
        self.builder = builder if builder is not None else RegistryBuilder()
        self.seen_extension = False
        self._include_chain: List[Path] = []

    # file handling
    def parse_file(self, path: Path) -> None:
        path = Path(path)
        resolved = path.resolve()
        if resolved in self._include_chain:
            logger.warning("Skipping recursive include of %s", path)
            return
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise IncludeError(f"Cannot read dictionary file {path}: {exc}") from exc

        self._include_chain.append(resolved)
        try:
            self.parse_text(text, source=str(path))
        finally:
            self._include_chain.pop()

    def parse_text(self, text: str, source: str = "<string>") -> None:
        for lineno, raw in enumerate(text.splitlines(), start=1):
            directive = tokenize_line(raw, source=source, line=lineno)
            if directive is not None:
                self.parse_directive(directive)

    # directive dispatch
    def parse_directive(self, d: DirectiveLine) -> None:
        kw = d.keyword
        if kw == "$INCLUDE":
            self._include(d)
        elif kw == "BEGIN-TLV":
            if d.args:
                self._begin_scope(d, "current_tlv", "BEGIN-TLV")
        elif kw == "END-TLV":
            self._end_scope(d, "current_tlv", "END-TLV")
        elif kw == "BEGIN-VENDOR":
            if d.args:
                self._begin_scope(d, "current_vendor", "BEGIN-VENDOR")
        elif kw == "END-VENDOR":
            self._end_scope(d, "current_vendor", "END-VENDOR")
        elif kw == "ATTRIBUTE":
            self._attribute(d)
        elif kw == "VALUE":
            self._value(d)
        elif kw == "VENDOR":
            self._vendor(d)
        else:
            logger.debug("%s:%d: ignoring directive %s", d.source, d.line, kw)

    def _include(self, d: DirectiveLine) -> None:
        if not d.args:
            return
        target = d.args[0]
        logger.info("Including file: %s", target)
        try:
            self.parse_file(self.config.dictionary_dir / target)
        except IncludeError as exc:
            logger.warning("%s:%d: %s", d.source, d.line, exc)
            return
        if Path(target).name == self.config.extension_file:
            self.seen_extension = True

    # scopes
    def _begin_scope(self, d: DirectiveLine, attr: str, what: str) -> None:
        current = getattr(self.builder, attr)
        if self.config.strict_scopes and current is not None:
            raise ScopeError(f"{d.source}:{d.line}: {what} {d.args[0]} while {current!r} is still open")
        setattr(self.builder, attr, d.args[0])

    def _end_scope(self, d: DirectiveLine, attr: str, what: str) -> None:
        current = getattr(self.builder, attr)
        if self.config.strict_scopes:
            if current is None:
                raise ScopeError(f"{d.source}:{d.line}: {what} without an open scope")
            if d.args and d.args[0] != current:
                raise ScopeError(f"{d.source}:{d.line}: {what} {d.args[0]} closes {current!r}")
        setattr(self.builder, attr, None)

    # definitions
    def _vendor(self, d: DirectiveLine) -> None:
        if len(d.args) < 2:
            return
        name, number = d.args[0], d.args[1]
        extra = d.args[2] if len(d.args) > 2 else None
        self.builder.vendors[name] = VendorDescriptor(
            name=name,
            number=number,
            namespace=vendor_namespace(self.config.namespace, name),
            extra=extra,
        )

    def _attribute(self, d: DirectiveLine) -> None:
        if len(d.args) < 3:
            return
        name, number, type_tag = d.args[0], d.args[1], d.args[2]
        if self.builder.has_seen(name):
            logger.debug("%s:%d: duplicate attribute %s ignored", d.source, d.line, name)
            return

        vendor_name: Optional[str] = None
        extra: Optional[str] = None
        vdesc: Optional[VendorDescriptor] = None
        for token in d.args[3:]:
            if token in self.builder.vendors:
                vendor_name = token
                vdesc = self.builder.vendors[token]
            else:
                extra = token

        if vendor_name is None and self.builder.current_vendor is not None:
            vendor_name = self.builder.current_vendor
            vdesc = self.builder.vendors.get(vendor_name)

        target = self.builder.attributes if vdesc is None else vdesc.attributes
        tlv = self.builder.current_tlv
        parent: Optional[AttributeDescriptor] = None
        if tlv is not None:
            parent = target.get(tlv)
            if parent is None and vdesc is None:
                # a vendor TLV opened outside BEGIN-VENDOR
                parent = self._find_vendor_attribute(tlv)
                if parent is not None:
                    vendor_name = parent.vendor

        desc = AttributeDescriptor(
            name=name, number=number, type=type_tag, extra=extra, vendor=vendor_name
        )

        if tlv is not None:
            if parent is None:
                logger.warning(
                    "%s:%d: attribute %s declared inside unknown TLV %s, dropped",
                    d.source, d.line, name, tlv,
                )
                return
            parent.add_sub_attribute(desc)
        else:
            target[name] = desc

        logger.debug("Seen = %s", name)
        self.builder.mark_seen(name)

    def _find_vendor_attribute(self, name: str) -> Optional[AttributeDescriptor]:
        for vdesc in self.builder.vendors.values():
            desc = vdesc.attributes.get(name)
            if desc is not None:
                return desc
        return None

    def _value(self, d: DirectiveLine) -> None:
        if len(d.args) < 3:
            return
        attr_name, value_name, value_num = d.args[0], d.args[1], d.args[2]
        desc = self.builder.resolve_value_target(attr_name)
        if desc is None:
            return
        desc.add_value(value_name, value_num)

    # completion
    def load_extension(self) -> None:
        """Merge the extension namespace unless the grammar already included it."""
        if self.seen_extension:
            return
        path = self.config.dictionary_dir / self.config.extension_file
        try:
            self.parse_file(path)
            return
        except IncludeError:
            logger.warning(
                "You have not included the JRadius dictionary (%s); using the built-in definitions",
                self.config.extension_file,
            )
        self.parse_text(DEFAULT_EXTENSION_DICTIONARY, source="<built-in extension>")

    def finish(self) -> Registry:
        self.load_extension()
        return self.builder.freeze()


# -----------------------------
# Public entry

def load_dictionary(config: CompilerConfig) -> Registry:
    """Parse the root grammar (and everything it includes) into a frozen Registry."""
    parser = DictionaryParser(config)
    parser.parse_file(config.root_path)
    return parser.finish()


def parse_dictionary_text(text: str, config: CompilerConfig, with_extension: bool = False) -> Registry:
    parser = DictionaryParser(config)
    parser.parse_text(text)
    if with_extension:
        return parser.finish()
    return parser.builder.freeze()
