import pytest

from kconftools.fixdep import (
    fix_deps,
    fnv32,
    format_config_dependency,
    main,
    scan_config_words,
)


def _reader(files):
    def read(path):
        try:
            return files[path]
        except KeyError:
            raise FileNotFoundError(2, "No such file or directory", path)

    return read


def test_fnv32_empty_is_offset_basis():
    assert fnv32(b"") == 2166136261


def test_fnv32_single_byte():
    assert fnv32(b"a") == 0xE40C292C


def test_fnv32_fits_32_bits_and_differs():
    values = {fnv32(w) for w in (b"FOO", b"BAR", b"FOO_BAR", b"x" * 100)}
    assert len(values) == 4
    assert all(0 <= v < 2**32 for v in values)


def test_scan_finds_word():
    assert list(scan_config_words(b"x CONFIG_FOO y")) == ["FOO"]


def test_scan_skips_word_at_offset_zero():
    assert list(scan_config_words(b"CONFIG_FOO \n")) == []


def test_scan_skips_unterminated_word():
    assert list(scan_config_words(b" CONFIG_FOO")) == []


def test_scan_strips_module_suffix():
    assert list(scan_config_words(b" CONFIG_BAR_MODULE\n")) == ["BAR"]


def test_scan_matches_inside_longer_identifier():
    assert list(scan_config_words(b"#if HELLO_CONFIG_BOOM\n")) == ["BOOM"]


def test_scan_reports_duplicates_in_order():
    data = b"#ifdef CONFIG_A\n#if CONFIG_B || CONFIG_A\n"
    assert list(scan_config_words(data)) == ["A", "B", "A"]


def test_format_config_dependency():
    assert (
        format_config_dependency("MY_OPTION")
        == "    $(wildcard include/config/my/option.h) \\\n"
    )


def test_fix_deps_full_example():
    dep = "foo.o: foo.c include/a.h \\\n  include/generated/autoconf.h\n"
    files = {
        "foo.c": b"#ifdef CONFIG_FOO_BAR\n#endif\n",
        "include/a.h": b"x CONFIG_FOO_BAR CONFIG_BAZ_MODULE\n",
    }
    out = fix_deps(dep, "foo.o", "gcc -c foo.c", _reader(files))
    expected = (
        "cmd_foo.o := gcc -c foo.c\n\n"
        "source_foo.o := foo.c\n\n"
        "deps_foo.o := \\\n"
        + format_config_dependency("FOO_BAR")
        + "  include/a.h \\\n"
        + format_config_dependency("BAZ")
        + "\nfoo.o: $(deps_foo.o)\n\n"
        "$(deps_foo.o):\n"
    )
    assert out == expected


def test_fix_deps_ignores_ver_and_autoconf_without_reading():
    dep = "t.o: t.c x.ver include/generated/autoconf.h\n"
    out = fix_deps(dep, "t.o", "cc", _reader({"t.c": b""}))
    assert "x.ver" not in out
    assert "autoconf.h" not in out
    assert "source_t.o := t.c" in out


def test_fix_deps_first_dependency_filtered_has_no_source_line():
    dep = "t.o: include/generated/autoconf.h t.c\n"
    out = fix_deps(dep, "t.o", "cc", _reader({"t.c": b""}))
    assert "source_t.o" not in out
    assert "  t.c \\\n" in out


def test_fix_deps_without_colon_raises():
    with pytest.raises(ValueError):
        fix_deps("no separator here", "t.o", "cc", _reader({}))


def test_fix_deps_missing_prerequisite_raises():
    with pytest.raises(FileNotFoundError):
        fix_deps("t.o: missing.c\n", "t.o", "cc", _reader({}))


def test_main_wrong_argument_count(capsys):
    assert main(["only-one"]) == 1
    assert "Usage: fixdep" in capsys.readouterr().err


def test_main_runs_on_files(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "foo.c").write_bytes(b"#ifdef CONFIG_NET_IP\n#endif\n")
    (tmp_path / "foo.d").write_text("foo.o: foo.c\n")
    assert main(["foo.d", "foo.o", "gcc -c foo.c"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("cmd_foo.o := gcc -c foo.c\n\n")
    assert format_config_dependency("NET_IP") in out
    assert out.endswith("$(deps_foo.o):\n")


def test_main_missing_depfile(tmp_path, capsys):
    assert main([str(tmp_path / "absent.d"), "foo.o", "cc"]) == 2
    assert "error opening depfile" in capsys.readouterr().err


def test_main_empty_depfile(tmp_path, capsys):
    dep = tmp_path / "empty.d"
    dep.write_bytes(b"")
    assert main([str(dep), "foo.o", "cc"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "cmd_foo.o := cc\n\n"
    assert "is empty" in captured.err


def test_main_missing_config_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "foo.d").write_text("foo.o: gone.c\n")
    assert main(["foo.d", "foo.o", "cc"]) == 2
    assert "error opening config file" in capsys.readouterr().err