"""End-to-end extraction through ErrorExtractor and run_extraction."""
import json

import pytest

from errmap.extractor.config import ExtractOptions
from errmap.extractor.pipeline import ErrorExtractor, extract_errors, run_extraction, scan_source
from errmap.internals.errors import ConfigError, ErrorKind, OutputError, SourceSyntaxError
from errmap.internals.report import Reporter

from conftest import URL, MemoryFileSystem

MAP = "/project/codes.json"


def extractor(memfs, options, project, reporter=None):
    return ErrorExtractor(options, fs=memfs, reporter=reporter, cwd=project)


def saved_map(memfs):
    return json.loads(memfs.files[MAP])


# --- validation ----------------------------------------------------------

@pytest.mark.parametrize("changes, code", [
    ({"error_map_file_path": None}, "EC0001"),
    ({"error_map_file_path": ""}, "EC0001"),
    ({"name": None}, "EC0002"),
    ({"name": ""}, "EC0002"),
    ({"lookup_url_prefix": True}, "EC0003"),
    ({"lookup_url_prefix": None}, "EC0003"),
    ({"callee": "a.b"}, "EC0004"),
])
def test_invalid_options_fail_before_any_io(memfs, options, project, changes, code):
    for key, value in changes.items():
        setattr(options, key, value)
    with pytest.raises(ConfigError) as excinfo:
        extractor(memfs, options, project)
    assert excinfo.value.code == code
    assert excinfo.value.kind is ErrorKind.CONFIG
    assert memfs.reads == [] and memfs.writes == []


def test_missing_path_is_checked_before_name(memfs, project):
    with pytest.raises(ConfigError) as excinfo:
        extractor(memfs, ExtractOptions(), project)
    assert excinfo.value.code == "EC0001"


def test_extract_errors_accepts_camel_case_mapping(memfs, project):
    extract = extract_errors({
        "errorMapFilePath": "codes.json",
        "name": "my-lib",
        "extractErrors": URL,
    }, fs=memfs, cwd=project)
    extract("invariant(ok, 'from mapping');")
    assert saved_map(memfs) == {"0": "from mapping"}


def test_extract_errors_rejects_flag_without_url(memfs, project):
    with pytest.raises(ConfigError) as excinfo:
        extract_errors({"errorMapFilePath": "codes.json", "name": "x", "extractErrors": True},
                       fs=memfs, cwd=project)
    assert excinfo.value.code == "EC0003"


def test_extract_errors_ignores_unrelated_build_options(memfs, project):
    extract = extract_errors({
        "errorMapFilePath": "codes.json",
        "name": "my-lib",
        "extractErrors": URL,
        "format": ["cjs", "esm"],
        "target": "browser",
    }, fs=memfs, cwd=project)
    extract("invariant(ok, 'with extra options');")
    assert saved_map(memfs) == {"0": "with extra options"}


# --- testable properties -------------------------------------------------

def test_monotonic_allocation_from_empty_map(memfs, options, project):
    ex = extractor(memfs, options, project)
    ex("invariant(a, 'A'); invariant(b, 'B'); invariant(c, 'C');")
    assert saved_map(memfs) == {"0": "A", "1": "B", "2": "C"}


def test_stability_of_existing_codes(memfs, options, project):
    memfs.files[MAP] = '{"0": "A"}'
    extractor(memfs, options, project)("invariant(ok, 'B');")
    assert saved_map(memfs) == {"0": "A", "1": "B"}


def test_dedup_within_a_run(memfs, options, project):
    ex = extractor(memfs, options, project)
    ex.transform("invariant(a, 'X');", "a.js")
    ex.transform("invariant(b, 'X'); invariant(c, 'X');", "b.js")
    ex.flush()
    assert saved_map(memfs) == {"0": "X"}


def test_fold_correctness(memfs, options, project):
    ex = extractor(memfs, options, project)
    messages = ex.transform("invariant(ok, 'Expected ' + x + ' items'); invariant(ok, 'Simple message');")
    assert [(m.template, m.code) for m in messages] == [("Expected %s items", 0), ("Simple message", 1)]


def test_idempotent_runs_produce_identical_bytes(memfs, options, project):
    src = "invariant(a, 'one'); invariant(b, `two ${x}`); invariant(c, 'one');"
    extractor(memfs, options, project)(src)
    first = memfs.files[MAP]
    extractor(memfs, options, project)(src)
    assert memfs.files[MAP] == first


def test_corrupt_map_restarts_at_zero_with_warning(memfs, options, project, reporter):
    memfs.files[MAP] = '{"0": "A", "1": '
    extractor(memfs, options, project, reporter)("invariant(ok, 'Z');")
    assert saved_map(memfs) == {"0": "Z"}
    assert [d.code for d in reporter.items] == ["EW0001"]


def test_unreadable_map_is_a_warning(options, project, reporter):
    class BrokenFS(MemoryFileSystem):
        def read_text(self, path):
            raise PermissionError(13, "Permission denied", str(path))

    fs = BrokenFS()
    extractor(fs, options, project, reporter)("invariant(ok, 'Z');")
    assert [d.code for d in reporter.items] == ["EW0002"]
    assert json.loads(fs.files[MAP]) == {"0": "Z"}


def test_parse_error_allocates_nothing(memfs, options, project):
    ex = extractor(memfs, options, project)
    with pytest.raises(SourceSyntaxError):
        ex.transform("invariant(ok, 'fine'); invariant(ok, 'broken);")
    assert len(ex.index) == 0


# --- emitted files -------------------------------------------------------

def test_flush_writes_map_then_helpers(memfs, options, project):
    extractor(memfs, options, project)("invariant(ok, 'A');")
    assert memfs.writes == [MAP, "/project/errors/ErrorDev.js", "/project/errors/ErrorProd.js"]
    assert "/project/errors" in memfs.dirs
    prod = memfs.files["/project/errors/ErrorProd.js"]
    assert f"let url = '{URL}' + code;" in prod
    assert "Minified MyLib error #${code}" in prod


def test_custom_errors_dir(memfs, options, project):
    options.errors_dir = "src/errors"
    extractor(memfs, options, project)("")
    assert "/project/src/errors/ErrorDev.js" in memfs.files


def test_write_failure_raises_output_error(memfs, options, project):
    memfs.fail_writes.add(MAP)
    ex = extractor(memfs, options, project)
    with pytest.raises(OutputError) as excinfo:
        ex("invariant(ok, 'A');")
    assert excinfo.value.kind is ErrorKind.IO
    assert excinfo.value.code == "EI0001"


# --- run over a source tree ----------------------------------------------

def write_tree(root, files):
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def test_run_extraction_processes_files_in_sorted_order(tmp_path, options):
    write_tree(tmp_path, {
        "src/b.js": "invariant(ok, 'from b');",
        "src/a/z.js": "invariant(ok, 'from a/z');",
        "src/a.js": "invariant(ok, 'from a');",
        "src/node_modules/dep.js": "invariant(ok, 'vendored');",
        "src/types.d.ts": "declare function f(): void;",
    })
    reporter = Reporter()
    assert run_extraction(options, reporter, cwd=tmp_path) == 0
    saved = json.loads((tmp_path / "codes.json").read_text(encoding="utf-8"))
    assert saved == {"0": "from a", "1": "from a/z", "2": "from b"}
    assert (tmp_path / "errors" / "ErrorProd.js").exists()


def test_run_extraction_reports_every_parse_error_and_writes_nothing(tmp_path, options):
    write_tree(tmp_path, {
        "src/a.js": "invariant(ok, 'a']);",
        "src/b.js": "invariant(ok, 'ok');",
        "src/c.js": "invariant(ok, `c);",
    })
    reporter = Reporter()
    assert run_extraction(options, reporter, cwd=tmp_path) == 2
    assert [d.code for d in reporter.items] == ["EP0002", "EP0001"]
    assert not (tmp_path / "codes.json").exists()


def test_run_extraction_warns_when_nothing_to_scan(tmp_path, options):
    (tmp_path / "src").mkdir()
    reporter = Reporter()
    assert run_extraction(options, reporter, cwd=tmp_path) == 1
    assert [d.code for d in reporter.items] == ["EW0005"]
    assert (tmp_path / "codes.json").read_text(encoding="utf-8") == "{}\n"


def test_run_extraction_missing_source_path(tmp_path, options):
    options.sources = ["lib"]
    reporter = Reporter()
    assert run_extraction(options, reporter, cwd=tmp_path) == 2
    assert [d.code for d in reporter.items] == ["EI0004"]


def test_run_extraction_config_error_is_reported(tmp_path):
    reporter = Reporter()
    assert run_extraction(ExtractOptions(error_map_file_path="codes.json"), reporter, cwd=tmp_path) == 2
    assert [d.code for d in reporter.items] == ["EC0002"]


def test_scan_source_without_store():
    messages = scan_source("invariant(a, 'x' + y); invariant(b);")
    assert [m.template for m in messages] == ["x%s"]
    assert messages[0].code is None


def test_scan_source_identity_escape_of_non_ascii_digit():
    messages = scan_source("invariant(ok, 'x\\\u0663y');")
    assert [m.template for m in messages] == ["x\u0663y"]
