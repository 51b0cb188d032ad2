"""Shared fixtures: compiler configs and a minimal attribute runtime for importing generated code."""

import importlib
import sys
from pathlib import Path

import pytest

from raddict_config import CompilerConfig

_RUNTIME_INIT = '''
class RadiusAttribute:
    attribute_name = None
    attribute_type = None
    attribute_value = None
    vendor_id = None
    vsa_attribute_type = None
    parent_class = None
    format = None

    def set_parent_class(self, cls):
        self.parent_class = cls

    def set_format(self, fmt):
        self.format = fmt

    def set_value(self, value):
        self.attribute_value.value = value

    def get_sub_attributes(self):
        return []


class VSAttribute(RadiusAttribute):
    pass


class VSAWithSubAttributes(VSAttribute):
    pass


class SubAttribute(VSAttribute):
    pass


class AttributeDictionary:
    pass


class VSADictionary:
    pass
'''

_VALUE_CLASSES = [
    "OctetsValue", "StringValue", "EncryptedStringValue", "IntegerValue", "SignedValue",
    "DateValue", "IPAddrValue", "IPv6AddrValue", "ComboIPAddrValue", "TLVValue",
]

_RUNTIME_VALUE = '''
class _Value:
    def __init__(self, *args):
        self.args = args
        self.length = 4
        self.value = None

    def set_length(self, length):
        self.length = length


class NamedValue(_Value):
    class NamedValueMap:
        pass
''' + "".join(f"\n\nclass {name}(_Value):\n    pass\n" for name in _VALUE_CLASSES)


@pytest.fixture
def make_config(tmp_path: Path):
    def factory(**overrides) -> CompilerConfig:
        kwargs = dict(
            namespace="gen.dict",
            dictionary_dir=tmp_path / "dict",
            output_dir=tmp_path / "out",
            runtime_package="fakeradius",
        )
        kwargs.update(overrides)
        return CompilerConfig(**kwargs)

    (tmp_path / "dict").mkdir()
    return factory


@pytest.fixture
def runtime(tmp_path: Path, monkeypatch):
    """Put a stand-in attribute runtime and the output tree on sys.path; returns an importer."""
    pkg = tmp_path / "runtime" / "fakeradius"
    pkg.mkdir(parents=True)
    (pkg / "__init__.py").write_text(_RUNTIME_INIT, encoding="utf-8")
    (pkg / "value.py").write_text(_RUNTIME_VALUE, encoding="utf-8")
    (tmp_path / "out").mkdir(exist_ok=True)
    monkeypatch.syspath_prepend(str(tmp_path / "runtime"))
    monkeypatch.syspath_prepend(str(tmp_path / "out"))

    def load(name: str):
        importlib.invalidate_caches()
        return importlib.import_module(name)

    yield load

    for name in list(sys.modules):
        if name.split(".")[0] in ("gen", "fakeradius"):
            del sys.modules[name]
