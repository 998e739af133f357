"""Rewrite compiler dependency lists so objects depend on individual config options.

Instead of depending on the generated autoconf header, every prerequisite is
scanned for ``CONFIG_*`` words, and a dependency on
``include/config/<option>.h`` is emitted for each one found.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Optional

_PATTERN = b"CONFIG_"
_SUFFIX = b"_MODULE"
_WORD_BYTES = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_"
)
_IGNORED_SUFFIXES = (
    "include/generated/autoconf.h",
    "arch/um/include/uml-config.h",
    ".ver",
)

_FNV_OFFSET = 2166136261
_FNV_PRIME = 0x01000193


def fnv32(data: bytes) -> int:
    """Return the 32-bit FNV-1a hash of data."""
    value = _FNV_OFFSET
    for byte in data:
        value = ((value ^ byte) * _FNV_PRIME) & 0xFFFFFFFF
    return value


def scan_config_words(data: bytes) -> Iterator[str]:
    """Yield the option name of every CONFIG_ word in data, in order.

    A trailing ``_MODULE`` is dropped.  Words at the very start of the data,
    and a word that runs to the end of the data without a terminating
    character, are not reported.
    """
    size = len(data)
    pos = data.find(_PATTERN, 1)
    while pos >= 0:
        start = pos + len(_PATTERN)
        end = start
        while end < size and data[end] in _WORD_BYTES:
            end += 1
        if end < size:
            if data[end - len(_SUFFIX):end] == _SUFFIX:
                end -= len(_SUFFIX)
            if end >= start:
                yield data[start:end].decode("latin-1")
        pos = data.find(_PATTERN, pos + 1)


def format_config_dependency(word: str) -> str:
    """Format the make dependency line for one config option."""
    path = word.lower().replace("_", "/")
    return f"    $(wildcard include/config/{path}.h) \\\n"


def _cmdline_line(target: str, cmdline: str) -> str:
    return f"cmd_{target} := {cmdline}\n\n"


def _is_word_char(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def _dependencies(text: str) -> Iterator[str]:
    colon = text.find(":")
    if colon < 0:
        raise ValueError("parse error")
    end = len(text)
    pos = colon + 1
    while pos < end:
        while pos < end and text[pos] in " \\\n":
            pos += 1
        stop = pos
        while stop < end and text[stop] != " ":
            stop += 1
        if stop == end:
            stop -= 1
            while stop >= pos and not _is_word_char(text[stop]):
                stop -= 1
            stop += 1
            if stop <= pos:
                return
        yield text[pos:stop]
        pos = stop + 1


def fix_deps(
    dep_text: str,
    target: str,
    cmdline: str,
    read_file: Callable[[str], bytes],
) -> str:
    """Return the make fragment for target built from a compiler dependency list.

    read_file is called with each kept prerequisite's path and must return its
    contents; errors it raises propagate.  Raises ValueError if dep_text has
    no target separator.
    """
    out = [_cmdline_line(target, cmdline)]
    if not dep_text:
        return out[0]
    seen: set[str] = set()
    first = True
    for name in _dependencies(dep_text):
        if not name.endswith(_IGNORED_SUFFIXES):
            if first:
                out.append(f"source_{target} := {name}\n\n")
                out.append(f"deps_{target} := \\\n")
            else:
                out.append(f"  {name} \\\n")
            data = read_file(name)
            for word in scan_config_words(data):
                if word not in seen:
                    seen.add(word)
                    out.append(format_config_dependency(word))
        first = False
    out.append(f"\n{target}: $(deps_{target})\n\n")
    out.append(f"$(deps_{target}):\n")
    return "".join(out)


def _read_bytes(path: str) -> bytes:
    return Path(path).read_bytes()


def main(argv: Optional[list[str]] = None) -> int:
    """Run fixdep: fixdep <depfile> <target> <cmdline>."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 3:
        sys.stderr.write("Usage: fixdep <depfile> <target> <cmdline>\n")
        return 1
    depfile, target, cmdline = args
    try:
        raw = Path(depfile).read_bytes()
    except OSError as exc:
        sys.stdout.write(_cmdline_line(target, cmdline))
        sys.stderr.write(
            f"fixdep: error opening depfile: {depfile}: {exc.strerror or exc}\n"
        )
        return 2
    if not raw:
        sys.stdout.write(_cmdline_line(target, cmdline))
        sys.stderr.write(f"fixdep: {depfile} is empty\n")
        return 0
    try:
        text = fix_deps(raw.decode("latin-1"), target, cmdline, _read_bytes)
    except ValueError:
        sys.stdout.write(_cmdline_line(target, cmdline))
        sys.stderr.write("fixdep: parse error\n")
        return 1
    except OSError as exc:
        sys.stdout.write(_cmdline_line(target, cmdline))
        sys.stderr.write(
            f"fixdep: error opening config file: {exc.filename}: "
            f"{exc.strerror or exc}\n"
        )
        return 2
    sys.stdout.write(text)
    return 0