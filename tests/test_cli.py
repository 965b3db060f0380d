import json
import os

import pytest

from maptask.errors import InvalidConfiguration
from maptask.framework.mapper import word_count_map
from maptask.worker.cli import main
from maptask.worker.loader import load_map_function

JOB_SOURCE = '''
def map_function(filename, contents):
    return [(line, filename) for line in contents.splitlines()]


def lengths(filename, contents):
    return [(w, str(len(w))) for w in contents.split()]
'''


@pytest.fixture
def job_file(tmp_path):
    path = tmp_path / "job.py"
    path.write_text(JOB_SOURCE)
    return str(path)


def test_load_from_module_reference():
    assert load_map_function("maptask.framework.mapper:word_count_map") is word_count_map


def test_load_from_path(job_file):
    fn = load_map_function(job_file)
    assert fn("f", "x\ny") == [("x", "f"), ("y", "f")]
    assert load_map_function(f"{job_file}:lengths")("f", "abc") == [("abc", "3")]


@pytest.mark.parametrize("reference", [
    "maptask.framework.mapper:no_such_function",
    "no_such_module_anywhere:map_function",
    "/definitely/not/here.py",
])
def test_load_failures(reference):
    with pytest.raises(InvalidConfiguration):
        load_map_function(reference)


def test_cli_success(tmp_path, job_file, capsys):
    input_path = tmp_path / "in.txt"
    input_path.write_text("one\ntwo\n")
    out_dir = tmp_path / "out"

    code = main([
        "--job", "lines", "--map-task", "5", "--input", str(input_path),
        "--n-reduce", "1", "--function", job_file, "--intermediate-dir", str(out_dir),
    ])

    assert code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed == {"0": os.path.join(str(out_dir), "mrtmp.lines-5-0")}


def test_cli_cleanup_flag(tmp_path, job_file):
    input_path = tmp_path / "in.txt"
    input_path.write_text("one\n")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "mrtmp.lines-0-3").write_text("stale\n")

    code = main([
        "--job", "lines", "--map-task", "0", "--input", str(input_path),
        "--n-reduce", "1", "--function", job_file, "--intermediate-dir", str(out_dir),
        "--cleanup",
    ])

    assert code == 0
    assert sorted(os.listdir(str(out_dir))) == ["mrtmp.lines-0-0"]


def test_cli_missing_input(tmp_path):
    code = main([
        "--job", "wc", "--map-task", "0", "--input", str(tmp_path / "missing.txt"),
        "--n-reduce", "2", "--intermediate-dir", str(tmp_path / "out"),
    ])
    assert code == 1


def test_cli_bad_reduce_count(tmp_path):
    code = main([
        "--job", "wc", "--map-task", "0", "--input", str(tmp_path / "x"),
        "--n-reduce", "0", "--intermediate-dir", str(tmp_path / "out"),
    ])
    assert code == 1


def test_cli_cleanup_failure_exits_nonzero(tmp_path):
    input_path = tmp_path / "in.txt"
    input_path.write_text("one\n")
    out_dir = tmp_path / "out"
    (out_dir / "mrtmp.wc-0-0").mkdir(parents=True)

    code = main([
        "--job", "wc", "--map-task", "0", "--input", str(input_path),
        "--n-reduce", "1", "--intermediate-dir", str(out_dir), "--cleanup",
    ])
    assert code == 1
