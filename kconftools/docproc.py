"""Template preprocessor for kernel-doc style documentation.

Templates are plain text with directive lines starting with ``!``:

* ``!Efile`` document the functions that file makes public
* ``!Ifile`` document the functions of file that are kept internal
* ``!Dfile`` only collect the public symbols of file
* ``!Ffile name...`` document the named functions of file
* ``!Pfile section`` insert the ``DOC:`` section of file
* ``!Cfile`` check that every documented item of file gets used

In ``doc`` mode the directives are expanded by running ``kernel-doc``; in
``depend`` mode the files the template refers to are listed for make.
"""

from __future__ import annotations

import os
import re
import subprocess
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import NamedTuple, Optional, TextIO

KERNELDOC = "kernel-doc"
KERNELDOC_PATH = "scripts/"
DOCBOOK = "-docbook"
LIST = "-list"
FUNCTION = "-function"
NOFUNCTION = "-nofunction"
NODOCSECTIONS = "-no-doc-sections"

_EXPORT_GPL = "EXPORT_SYMBOL_GPL"
_EXPORT = "EXPORT_SYMBOL"
_EXPORT_TAIL = re.compile(r"[A-Za-z0-9_]*\s*\(\s*([A-Za-z0-9_]*)", re.ASCII)
_SPACE = " \t\n\v\f\r"

_USAGE = (
    "Usage: docproc {doc|depend} file\n"
    "Input is read from file.tmpl. Output is sent to stdout\n"
    "doc: frontend when generating kernel documentation\n"
    "depend: generate list of files referenced within file\n"
    "Environment variable SRCTREE: absolute path to sources.\n"
    "                     KBUILD_SRC: absolute path to kernel source tree.\n"
)

Runner = Callable[[list[str]], "tuple[int, str]"]


def find_export_symbols(text: str) -> list[str]:
    """Return the symbols made public by the symbol macros in text, in order."""
    found: list[str] = []
    for line in text.split("\n"):
        pos = line.find(_EXPORT_GPL)
        if pos < 0:
            pos = line.find(_EXPORT)
        if pos < 0:
            continue
        match = _EXPORT_TAIL.match(line, pos)
        if match is None:
            continue
        found.append(match.group(1))
    return found


class Directive(NamedTuple):
    """A parsed template directive line."""

    kind: str
    filename: str
    rest: str


def _split_word(text: str) -> tuple[str, str]:
    for index, ch in enumerate(text):
        if ch in _SPACE:
            return text[:index], text[index + 1:]
    return text, ""


def split_directive(line: str) -> Optional[Directive]:
    """Parse a template line; return None for lines that are copied as they are."""
    if len(line) < 2 or line[0] != "!" or line[1] not in "EIDFPC":
        return None
    kind = line[1]
    filename, rest = _split_word(line[2:])
    if kind in "FP":
        return Directive(kind, filename, rest.lstrip(_SPACE))
    return Directive(kind, filename, "")


class DocProcessor:
    """Expands template directives, keeping track of kernel-doc's exit status."""

    def __init__(
        self,
        srctree: str,
        kernsrctree: Optional[str] = None,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        runner: Optional[Runner] = None,
    ) -> None:
        self.srctree = srctree
        self.kernsrctree = kernsrctree or srctree
        self.out = sys.stdout if out is None else out
        self.err = sys.stderr if err is None else err
        self.runner = self._exec if runner is None else runner
        self.exit_status = 0
        self.symbols: dict[str, list[str]] = {}
        self.all_list: list[Optional[str]] = []

    @property
    def kernel_doc_path(self) -> str:
        """Path of the kernel-doc program that is run."""
        return f"{self.kernsrctree}/{KERNELDOC_PATH}{KERNELDOC}"

    def _exec(self, args: list[str]) -> tuple[int, str]:
        path = self.kernel_doc_path
        try:
            proc = subprocess.run(
                args, executable=path, stdout=subprocess.PIPE, check=False
            )
        except OSError as exc:
            self.err.write(f"exec {path}: {exc.strerror or exc}\n")
            return 1, ""
        return proc.returncode, proc.stdout.decode("utf-8", errors="replace")

    def run_kernel_doc(self, args: Sequence[str]) -> str:
        """Run kernel-doc with args (args[0] is its name); return what it printed."""
        status, output = self.runner(list(args))
        if status < 0:
            self.exit_status = 0xFF
        else:
            self.exit_status |= status
        return output

    def _consume(self, name: str) -> None:
        for index, entry in enumerate(self.all_list):
            if entry is not None and entry == name:
                self.all_list[index] = None
                return

    def _collect_exports(self, filename: str) -> None:
        if filename in self.symbols:
            return
        path = f"{self.srctree}/{filename}"
        self.symbols[filename] = []
        text = Path(path).read_text(encoding="latin-1")
        self.symbols[filename] = find_export_symbols(text)

    def _collect_all(self, filename: str) -> None:
        output = self.run_kernel_doc([KERNELDOC, LIST, filename])
        self.all_list.extend(output.split("\n")[:-1])

    def _doc_functions(self, filename: str, option: str) -> None:
        args = [KERNELDOC, DOCBOOK, NODOCSECTIONS]
        for names in self.symbols.values():
            for name in names:
                self._consume(name)
                args += [option, name]
        args.append(filename)
        self.out.write(f"<!-- {filename} -->\n")
        self.out.write(self.run_kernel_doc(args))

    def _single_functions(self, filename: str, rest: str) -> None:
        args = [KERNELDOC, DOCBOOK]
        for name in rest.split():
            args += [FUNCTION, name]
        for option, value in zip(args, args[1:]):
            if option == FUNCTION:
                self._consume(value)
        args.append(filename)
        self.out.write(self.run_kernel_doc(args))

    def _doc_section(self, filename: str, rest: str) -> None:
        section = rest.split("\n", 1)[0]
        self._consume(f"DOC: {section}")
        self.out.write(
            self.run_kernel_doc([KERNELDOC, DOCBOOK, FUNCTION, section, filename])
        )

    def depend(self, template_name: str, lines: Iterable[str]) -> None:
        """Write the template name followed by every file it refers to."""
        self.out.write(f"{template_name}\t")
        for line in lines:
            directive = split_directive(line)
            if directive is not None:
                self.out.write(f"\t{directive.filename}")
        self.out.write("\n")

    def doc(self, lines: Iterable[str]) -> list[str]:
        """Expand the template; return the documented items that were never used.

        Raises OSError if a file named by an !E, !I or !D directive cannot be read.
        """
        lines = list(lines)
        for line in lines:
            directive = split_directive(line)
            if directive is None:
                continue
            if directive.kind in "EID":
                self._collect_exports(directive.filename)
            elif directive.kind == "C":
                self._collect_all(directive.filename)

        for line in lines:
            directive = split_directive(line)
            if directive is None:
                self.out.write(line)
                continue
            kind, filename, rest = directive
            if kind == "E":
                self._doc_functions(filename, FUNCTION)
            elif kind == "I":
                self._doc_functions(filename, NOFUNCTION)
            elif kind == "D":
                self.out.write(filename)
            elif kind == "F":
                self._single_functions(filename, rest)
            elif kind == "P":
                self._doc_section(filename, rest)

        unused = [entry for entry in self.all_list if entry is not None]
        for entry in unused:
            self.err.write(f"Warning: didn't use docs for {entry}\n")
        return unused


def main(argv: Optional[list[str]] = None) -> int:
    """Run docproc: docproc {doc|depend} file."""
    args = sys.argv[1:] if argv is None else list(argv)
    srctree = os.environ.get("SRCTREE") or os.getcwd()
    kernsrctree = os.environ.get("KBUILD_SRC") or srctree
    if len(args) != 2:
        sys.stderr.write(_USAGE)
        return 1
    mode, template = args
    try:
        with open(template, encoding="latin-1", newline="") as handle:
            lines = handle.readlines()
    except OSError as exc:
        sys.stderr.write(f"docproc: {template}: {exc.strerror or exc}\n")
        return 2

    processor = DocProcessor(srctree, kernsrctree)
    if mode == "doc":
        try:
            processor.doc(lines)
        except OSError as exc:
            sys.stdout.flush()
            sys.stderr.write(f"docproc: {exc.filename}: {exc.strerror or exc}\n")
            return 1
    elif mode == "depend":
        processor.depend(template, lines)
    else:
        sys.stderr.write(f"Unknown option: {mode}\n")
        return 1
    sys.stdout.flush()
    return processor.exit_status