# kconftools

Tools for working with Kconfig-style build configurations.

## Modules

- **`kconftools.expr`**: the tristate logic (`Tristate`: `NO`, `MOD`,
  `YES`), symbols (`Symbol`, with `string_value()`) and dependency
  expressions (`Expr`, with `copy()`). It has helpers to build expressions
  (`symbol`, `unary`, `binary`, `compare`, `and_`, `or_`), to test for the
  constants (`is_yes`, `is_no`), to evaluate them against the symbols'
  current values (`calc_value`), to compare and reduce them (`equivalent`,
  `eliminate_eq`, `eliminate_yn`, `trans_bool`), to query them
  (`contains_symbol`, `depends_symbol`) and to print them (`tokens`,
  `to_string`, `gstr_print`, which adds each symbol's value and can wrap
  at a given width).
- **`kconftools.simplify`**: rewriting of expressions. `transform` pushes
  negations inward and turns comparisons of boolean symbols into plain
  tests; `eliminate_dups` merges redundant operands of AND/OR trees until
  nothing more changes; `extract_eq_and` and `extract_eq_or` pull out the
  operands two expressions share and return `(common, e1, e2)`;
  `trans_compare` rewrites `(e) = sym` and `(e) != sym`;
  `simplify_unmet_dep` returns the leading symbol of the part of one
  expression that another does not already imply.
- **`kconftools.confdata`**: the line formats of configuration files.
  `config_name` (an override, `$CIAO_CONFIG` or `.config`) and
  `autoconfig_name` (`$KCONFIG_AUTOCONFIG` or `include/auto.conf`) locate
  the files; `expand_value` replaces `$NAME` references through a lookup
  function; `parse_config_line` reads `CONFIG_NAME=value` and
  `# CONFIG_NAME is not set` lines (raising `ValueError` for unexpected
  data); `unquote_value` decodes quoted string values; `format_string`,
  `format_symbol` and `format_autoconf_header` write a symbol as a config
  line or as C `#define` lines; `config_header_path` maps `FOO_BAR` to
  `foo/bar.h`; `ChangeTracker` counts unsaved changes and calls a callback
  whenever the "changed" state flips.
- **`kconftools.fixdep`**: rewrites compiler `-MD` dependency files so
  that an object depends on the individual `CONFIG_` options its
  prerequisites mention, not on the whole generated `autoconf.h`. The
  pieces are available separately: `fnv32`, `scan_config_words`,
  `format_config_dependency` and `fix_deps`.
- **`kconftools.docproc`**: preprocesses documentation templates.
  `find_export_symbols` lists the symbols a source text exports,
  `split_directive` parses a template line, and `DocProcessor` runs the
  `depend` and `doc` modes.

No third-party libraries are needed; Python 3.10 or later is required.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Commands

### kconftools-fixdep

```
kconftools-fixdep <depfile> <target> <cmdline>
```

Reads the dependency file written by the compiler and prints a make
fragment to standard output:

```
cmd_<target> := <cmdline>

source_<target> := <first prerequisite>

deps_<target> := \
  <other prerequisites> \
    $(wildcard include/config/my/option.h) \

<target>: $(deps_<target>)

$(deps_<target>):
```

Dependencies on `include/generated/autoconf.h`,
`arch/um/include/uml-config.h` and `*.ver` files are dropped. Every kept
prerequisite is scanned for `CONFIG_` words; each distinct option adds one
`$(wildcard include/config/...)` line, with a trailing `_MODULE` removed.

An empty dependency file prints only the `cmd_` line and a warning. A
dependency file that cannot be opened, or a prerequisite that cannot be
read, exits with status 2; a dependency file without a `:` exits with
status 1. Wrong arguments print the usage and exit with status 1.

### kconftools-docproc

```
kconftools-docproc doc file.tmpl
kconftools-docproc depend file.tmpl
```

`depend` prints the template name followed by every file its directives
refer to, separated by tabs, in a form make understands.

`doc` copies the template to standard output, replacing each directive
with the output of `scripts/kernel-doc`:

| Directive            | Effect                                                            |
|----------------------|-------------------------------------------------------------------|
| `!Efile`             | document, in `file`, the symbols exported by the listed files     |
| `!Ifile`             | document `file` leaving those exported symbols out                |
| `!Dfile`             | collect the symbols `file` exports; the file name itself is printed |
| `!Ffile func ...`    | document the named functions                                      |
| `!Pfile section`     | insert the `DOC:` section of that name                            |
| `!Cfile`             | warn about documentation in `file` that no directive used         |

Symbols are exported by lines using `EXPORT_SYMBOL` or
`EXPORT_SYMBOL_GPL`. The environment variable `SRCTREE` gives the source
tree the referenced files are read from (the current directory by
default); `KBUILD_SRC` gives the tree that holds `scripts/kernel-doc`
(defaulting to `SRCTREE`). The exit status is the combined exit status of
the `kernel-doc` runs; a template that cannot be opened gives status 2, and
a referenced file that cannot be read gives status 1.

## Library use

```python
from kconftools import confdata, fixdep

words = fixdep.scan_config_words(b"#ifdef CONFIG_FOO_BAR\n")
lines = [fixdep.format_config_dependency(word) for word in words]

parsed = confdata.parse_config_line('CONFIG_NAME="value"\n')
value = confdata.unquote_value(parsed[1])
```

## What this package does not do

- It has no parser for Kconfig description files and no symbol table, so
  it cannot load a configuration model, compute symbol visibility or
  defaults, or resolve `select` and `depends on` across a whole tree.
- It has no configuration front end: there is no interactive, menu-driven
  or graphical configurator, and no `oldconfig`, `defconfig` or
  `allyesconfig` style command.
- `kconftools.confdata` reads and writes single lines and values only; it
  does not read a whole `.config` into symbols or write out complete
  `.config`, `auto.conf` or `autoconf.h` files and the per-option header
  tree.