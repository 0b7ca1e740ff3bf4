"""Tests for the in-place unstrip sequence."""
import subprocess
from unittest.mock import MagicMock

import pytest

from conftest import DEBUG_PATH, LOCAL_PATH, FakeFilesystem, merge_tool_writing
from crash_symbols.boundary import ProcessHandler
from crash_symbols.errors import PatchError
from crash_symbols.patcher import BinaryPatcher

TEMP_PATH = LOCAL_PATH + ".old"


@pytest.fixture
def fs():
    return FakeFilesystem(files={LOCAL_PATH, DEBUG_PATH})


@pytest.fixture
def process(fs):
    handler = MagicMock(spec=ProcessHandler)
    handler.execute_and_capture_output.side_effect = merge_tool_writing(fs)
    return handler


@pytest.fixture
def patcher(fs, process):
    return BinaryPatcher(fs, process, timeout=5, verbose=False)


def test_patch_sequence_order(patcher, fs, process):
    """Move aside, merge, then remove the staged copy."""
    patcher.patch(LOCAL_PATH, DEBUG_PATH)

    mutations = [c for c in fs.calls if c[0] in ("move", "delete")]
    assert mutations == [("move", LOCAL_PATH, TEMP_PATH), ("delete", TEMP_PATH)]
    process.execute_and_capture_output.assert_called_once_with(
        "eu-unstrip", ["-o", LOCAL_PATH, TEMP_PATH, DEBUG_PATH], timeout=5)
    assert fs.files == {LOCAL_PATH, DEBUG_PATH}


def test_stale_temp_file_removed_first(patcher, fs):
    fs.files.add(TEMP_PATH)

    patcher.patch(LOCAL_PATH, DEBUG_PATH)

    mutations = [c for c in fs.calls if c[0] in ("move", "delete")]
    assert mutations == [
        ("delete", TEMP_PATH),
        ("move", LOCAL_PATH, TEMP_PATH),
        ("delete", TEMP_PATH),
    ]


def test_nonzero_exit_raises_and_restores(patcher, fs, process):
    process.execute_and_capture_output.side_effect = merge_tool_writing(fs, returncode=3)

    with pytest.raises(PatchError) as excinfo:
        patcher.patch(LOCAL_PATH, DEBUG_PATH)

    assert excinfo.value.returncode == 3
    assert "unstrip failed" in excinfo.value.output
    assert ("move", TEMP_PATH, LOCAL_PATH) in fs.calls
    assert fs.files == {LOCAL_PATH, DEBUG_PATH}


def test_partial_output_replaced_by_original(patcher, fs, process):
    """Output written by a failing merge is discarded in favour of the original."""
    def half_written(command, args, timeout=None):
        fs.files.add(args[1])
        raise subprocess.TimeoutExpired(command, timeout)
    process.execute_and_capture_output.side_effect = half_written

    with pytest.raises(subprocess.TimeoutExpired):
        patcher.patch(LOCAL_PATH, DEBUG_PATH)

    assert fs.calls[-3:] == [
        ("delete", LOCAL_PATH),
        ("move", TEMP_PATH, LOCAL_PATH),
        ("delete", TEMP_PATH),
    ]
    assert fs.files == {LOCAL_PATH, DEBUG_PATH}


def test_exit_status_ignored_when_unchecked(fs, process):
    process.execute_and_capture_output.side_effect = merge_tool_writing(fs, returncode=1)
    patcher = BinaryPatcher(fs, process, check_exit_status=False, verbose=False)

    patcher.patch(LOCAL_PATH, DEBUG_PATH)

    assert fs.count("delete", TEMP_PATH) == 1
    assert ("move", TEMP_PATH, LOCAL_PATH) not in fs.calls


def test_custom_merge_tool(fs, process):
    patcher = BinaryPatcher(fs, process, merge_tool="/opt/elfutils/bin/eu-unstrip", verbose=False)
    patcher.patch(LOCAL_PATH, DEBUG_PATH)
    assert process.execute_and_capture_output.call_args[0][0] == "/opt/elfutils/bin/eu-unstrip"


def test_recover_interrupted(patcher, fs):
    fs.files = {TEMP_PATH}
    assert patcher.recover_interrupted(LOCAL_PATH) is True
    assert fs.files == {LOCAL_PATH}


def test_recover_interrupted_noop_when_binary_present(patcher, fs):
    fs.files.add(TEMP_PATH)
    assert patcher.recover_interrupted(LOCAL_PATH) is False
    assert not any(c[0] == "move" for c in fs.calls)
