# Compiler configuration and logging setup

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dict_struct import ConfigError

DEFAULT_RUNTIME_PACKAGE = "jradius.packet.attribute"
DEFAULT_ROOT_FILE = "dictionary"
DEFAULT_EXTENSION_FILE = "dictionary.jradius"

# Always-present extension namespace, used when dictionary.jradius
# is neither included nor found next to the root grammar.
DEFAULT_EXTENSION_DICTIONARY = (
    "VENDOR\t"    "JRadius\t"              "19211\n"
    "ATTRIBUTE\t" "JRadius-Request-Id\t"   "1\t" "string\t" "JRadius\n"
    "ATTRIBUTE\t" "JRadius-Session-Id\t"   "2\t" "string\t" "JRadius\n"
    "ATTRIBUTE\t" "JRadius-Proxy-Client\t" "3\t" "octets\t" "JRadius\n"
)


@dataclass
class CompilerConfig:
    namespace: str                      # dotted root of the generated tree, e.g. "net.dictionary"
    dictionary_dir: Path
    output_dir: Path
    runtime_package: str = DEFAULT_RUNTIME_PACKAGE
    root_file: str = DEFAULT_ROOT_FILE
    extension_file: str = DEFAULT_EXTENSION_FILE
    strict_scopes: bool = False
    write_init_files: bool = True

    def __post_init__(self) -> None:
        self.dictionary_dir = Path(self.dictionary_dir)
        self.output_dir = Path(self.output_dir)
        _check_dotted(self.namespace, "namespace")
        _check_dotted(self.runtime_package, "runtime package")

    @property
    def root_path(self) -> Path:
        return self.dictionary_dir / self.root_file

    def namespace_dir(self, namespace: str) -> Path:
        return self.output_dir.joinpath(*namespace.split("."))


def _check_dotted(value: str, what: str) -> None:
    if not value:
        raise ConfigError(f"Empty {what}")
    for part in value.split("."):
        if not part.isidentifier():
            raise ConfigError(f"Invalid {what} {value!r}: segment {part!r} is not an identifier")


def configure_logging(verbosity: int = 0, stream: Optional[object] = None) -> None:
    """
    Route log records to stderr.

    verbosity < 0 -> warnings only, 0 -> info, > 0 -> debug
    """
    if verbosity < 0:
        level = logging.WARNING
    elif verbosity == 0:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=stream or sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
