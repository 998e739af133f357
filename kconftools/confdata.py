"""Reading and writing of configuration files and generated headers."""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Optional

from .expr import Symbol, SymbolType, Tristate

CONFIG_PREFIX = "CONFIG_"
DEFAULT_CONFIG_NAME = ".config"
DEFAULT_AUTOCONFIG_NAME = "include/auto.conf"

_VARIABLE = re.compile(r"\$([A-Za-z0-9_]*)")


@dataclass
class ChangeTracker:
    """Counts unsaved changes and reports when the 'changed' state flips."""

    count: int = 0
    callback: Optional[Callable[[], None]] = None

    def set_count(self, count: int) -> None:
        """Set the change count, notifying the callback if changed() flips."""
        previous = self.count
        self.count = count
        if self.callback is not None and bool(previous) != bool(count):
            self.callback()

    def add_count(self, count: int) -> None:
        """Add to the change count."""
        self.set_count(self.count + count)

    def changed(self) -> bool:
        """True while there are unsaved changes."""
        return bool(self.count)


def config_name(
    env: Optional[Mapping[str, str]] = None, override: Optional[str] = None
) -> str:
    """Return the configuration file name: override, $CIAO_CONFIG or '.config'."""
    if override:
        return override
    environ = os.environ if env is None else env
    name = environ.get("CIAO_CONFIG")
    return name if name is not None else DEFAULT_CONFIG_NAME


def autoconfig_name(env: Optional[Mapping[str, str]] = None) -> str:
    """Return the auto.conf path: $KCONFIG_AUTOCONFIG or 'include/auto.conf'."""
    environ = os.environ if env is None else env
    name = environ.get("KCONFIG_AUTOCONFIG")
    return name if name is not None else DEFAULT_AUTOCONFIG_NAME


def expand_value(text: str, lookup: Callable[[str], str]) -> str:
    """Replace each $NAME in text with the string lookup(NAME) returns."""
    return _VARIABLE.sub(lambda m: lookup(m.group(1)), text)


def parse_config_line(line: str) -> Optional[tuple[str, Optional[str]]]:
    """Parse one line of a config file.

    Returns (name, value) for 'CONFIG_NAME=value', (name, None) for
    '# CONFIG_NAME is not set', and None for lines to be skipped.
    Raises ValueError for lines holding unexpected data.
    """
    plen = len(CONFIG_PREFIX)
    if line.startswith("#"):
        if line[2:2 + plen] != CONFIG_PREFIX:
            return None
        space = line.find(" ", 2 + plen)
        if space < 0:
            return None
        if not line[space + 1:].startswith("is not set"):
            return None
        return line[2 + plen:space], None
    if line.startswith(CONFIG_PREFIX):
        eq = line.find("=", plen)
        if eq < 0:
            return None
        value = line[eq + 1:]
        newline = value.find("\n")
        if newline >= 0:
            value = value[:newline]
            if value.endswith("\r"):
                value = value[:-1]
        return line[plen:eq], value
    if not line or line[0] in "\r\n":
        return None
    raise ValueError("unexpected data")


def unquote_value(text: str) -> str:
    """Decode a double-quoted, backslash-escaped string value."""
    if not text.startswith('"'):
        raise ValueError("invalid string found")
    chars: list[str] = []
    it = iter(text[1:])
    for ch in it:
        if ch == '"':
            return "".join(chars)
        if ch == "\\":
            escaped = next(it, None)
            if escaped is None:
                break
            chars.append(escaped)
        else:
            chars.append(ch)
    raise ValueError("invalid string found")


def format_string(name: str, value: str, header: bool = False) -> str:
    """Format a string symbol as a config line or a C #define."""
    if header:
        start = f'#define {CONFIG_PREFIX}{name} "'
    else:
        start = f'{CONFIG_PREFIX}{name}="'
    body = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'{start}{body}"\n'


def format_symbol(sym: Symbol, write_no: bool = True) -> str:
    """Format a symbol's current value as config file text (may be empty)."""
    t = sym.type
    if t in (SymbolType.BOOLEAN, SymbolType.TRISTATE):
        tri = Tristate(sym.tri)
        if tri is Tristate.NO:
            return f"# {CONFIG_PREFIX}{sym.name} is not set\n" if write_no else ""
        letter = "m" if tri is Tristate.MOD else "y"
        return f"{CONFIG_PREFIX}{sym.name}={letter}\n"
    if t is SymbolType.STRING:
        return format_string(sym.name, sym.string_value())
    if t in (SymbolType.HEX, SymbolType.INT):
        return f"{CONFIG_PREFIX}{sym.name}={sym.string_value()}\n"
    return ""


def format_autoconf_header(sym: Symbol) -> str:
    """Format a symbol's current value as C #define lines (may be empty)."""
    t = sym.type
    if t in (SymbolType.BOOLEAN, SymbolType.TRISTATE):
        tri = Tristate(sym.tri)
        if tri is Tristate.MOD:
            return f"#define {CONFIG_PREFIX}{sym.name}_MODULE 1\n"
        if tri is Tristate.YES:
            return f"#define {CONFIG_PREFIX}{sym.name} 1\n"
        return ""
    if t is SymbolType.STRING:
        return format_string(sym.name, sym.string_value(), header=True)
    if t in (SymbolType.HEX, SymbolType.INT):
        value = sym.string_value()
        if t is SymbolType.HEX and value[:2] not in ("0x", "0X"):
            value = "0x" + value
        return f"#define {CONFIG_PREFIX}{sym.name} {value}\n"
    return ""


def config_header_path(name: str) -> str:
    """Map a symbol name to its per-option file path: FOO_BAR -> foo/bar.h."""
    return name.lower().replace("_", "/") + ".h"