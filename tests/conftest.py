"""Shared fixtures for lmc tests."""

import logging
import os

import pytest


def _write_file(path, content="", executable=False):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    mode = 0o755 if executable else 0o644
    os.chmod(path, mode)
    return path


@pytest.fixture
def write_file():
    """Helper writing a file (parents created), optionally executable."""
    return _write_file


@pytest.fixture(autouse=True)
def reset_lmc_logger():
    """Drop handlers added by setup_logging so each test gets fresh streams."""
    yield
    logger = logging.getLogger("lmc")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def bin_dirs(tmp_path, write_file):
    """Two directories of executables, as a module would install them."""
    gcc_bin = tmp_path / "sw" / "gcc" / "12.2.0" / "bin"
    write_file(gcc_bin / "gcc", "#!/bin/sh\n", executable=True)
    write_file(gcc_bin / "g++", "#!/bin/sh\n", executable=True)
    write_file(gcc_bin / "README", "not a binary\n")
    (gcc_bin / "plugins").mkdir()

    py_bin = tmp_path / "sw" / "python" / "3.11" / "bin"
    write_file(py_bin / "python3", "#!/bin/sh\n", executable=True)
    write_file(py_bin / "pip3", "#!/bin/sh\n", executable=True)
    return {"gcc": gcc_bin, "python": py_bin}


@pytest.fixture
def module_root(tmp_path, bin_dirs, write_file):
    """A module root with one Tcl and one Lmod module."""
    root = tmp_path / "modules"
    write_file(
        root / "gcc" / "12.2.0",
        "#%Module1.0\n"
        "## GNU compilers\n"
        f"set prefix {bin_dirs['gcc'].parent}\n"
        "prepend-path PATH $prefix/bin\n"
        "prepend-path MANPATH $prefix/share/man\n",
    )
    write_file(
        root / "python" / "3.11.lua",
        'help([[Python interpreter]])\n'
        f'prepend_path("PATH", "{bin_dirs["python"]}")\n'
        'setenv("PYTHONNOUSERSITE", "1")\n',
    )
    return root
