import logging

import pytest
from conftest import GEOMETRY, write_asm

from aie_profile import null_logger
from aie_profile.ct import (
    CTConfig,
    CTConfigError,
    CTFileGenerator,
    InMemoryCounterStore,
    JsonCounterConfig,
)
from aie_profile.ct.types import CounterRecord


ASM_WITH_MARKERS = [
    "START_JOB 0",
    "SAVE_TIMESTAMPS 0",
    "  WRITE_32 0x00031500 0x1",
    "END_JOB",
    "save_timestamps 1",
]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _generator(counter_config, **kwargs):
    return CTFileGenerator(counter_config, counter_config, device_id=0, **kwargs)


def test_reads_geometry_once(counter_config):
    calls = []

    class Metadata:
        def configured_geometry(self):
            calls.append(1)
            return GEOMETRY

    generator = CTFileGenerator(counter_config, Metadata())
    assert generator.geometry == GEOMETRY
    assert len(calls) == 1


def test_generates_ct_file(workdir, counter_config):
    write_asm(workdir / "build" / "aie_runtime_control0.asm", ASM_WITH_MARKERS)
    write_asm(workdir / "build" / "aie_runtime_control1.asm", ASM_WITH_MARKERS)
    write_asm(workdir / "build" / "aie_runtime_control2.asm", ASM_WITH_MARKERS)

    generator = _generator(counter_config)
    assert generator.generate()

    script = (workdir / "aie_profile.ct").read_text()
    assert "jprobe:aie_runtime_control0.asm:uc0:line2,5\n" in script
    assert "jprobe:aie_runtime_control1.asm:uc4:line2,5\n" in script
    # No configured counter lies in columns 8-11.
    assert "aie_runtime_control2.asm" not in script
    assert script.count("read_reg(") == 3
    assert script.index("uc0:") < script.index("uc4:")


def test_artifacts_without_points_are_skipped(workdir, counter_config):
    write_asm(workdir / "aie_runtime_control0.asm", ["nop"])
    write_asm(workdir / "aie_runtime_control1.asm", ASM_WITH_MARKERS)

    assert _generator(counter_config).generate()
    script = (workdir / "aie_profile.ct").read_text()
    assert "jprobe:aie_runtime_control0.asm" not in script
    assert "jprobe:aie_runtime_control1.asm" in script


def test_config_paths(tmp_path, counter_config):
    src = tmp_path / "src"
    out = tmp_path / "out"
    out.mkdir()
    write_asm(src / "aie_runtime_control0.asm", ASM_WITH_MARKERS)

    config = CTConfig(
        output_filename="run.ct",
        telemetry_filename="run.json",
        search_root=str(src),
        output_dir=str(out),
    )
    generator = _generator(counter_config, config=config)
    assert generator.output_path == out / "run.ct"
    assert generator.generate()
    assert '"run.json"' in (out / "run.ct").read_text()


class TestEarlyExit:
    def test_no_artifacts(self, workdir, counter_config, caplog):
        caplog.set_level(logging.DEBUG, logger="aie_profile")
        assert not _generator(counter_config).generate()
        assert not (workdir / "aie_profile.ct").exists()
        assert "No aie_runtime_control<id>.asm files found" in caplog.text

    def test_no_counters(self, workdir, caplog):
        caplog.set_level(logging.DEBUG, logger="aie_profile")
        write_asm(workdir / "aie_runtime_control0.asm", ASM_WITH_MARKERS)
        config = JsonCounterConfig(GEOMETRY, {})
        assert not _generator(config).generate()
        assert not (workdir / "aie_profile.ct").exists()
        assert "No AIE counters configured" in caplog.text

    def test_no_instrumentation_points(self, workdir, counter_config, caplog):
        caplog.set_level(logging.DEBUG, logger="aie_profile")
        write_asm(workdir / "aie_runtime_control0.asm", ["START_JOB 0", "END_JOB"])
        write_asm(workdir / "aie_runtime_control1.asm", ["nop"])
        assert not _generator(counter_config).generate()
        assert not (workdir / "aie_profile.ct").exists()
        assert "No SAVE_TIMESTAMPS instructions found" in caplog.text

    def test_points_outside_counter_columns(self, workdir, counter_config):
        # Timestamps exist but no counter maps to group 3: the file is still written.
        write_asm(workdir / "aie_runtime_control3.asm", ASM_WITH_MARKERS)
        assert _generator(counter_config).generate()
        assert "jprobe:" not in (workdir / "aie_profile.ct").read_text()

    def test_unwritable_output(self, workdir, counter_config):
        write_asm(workdir / "aie_runtime_control0.asm", ASM_WITH_MARKERS)
        config = CTConfig(output_dir=str(workdir / "does_not_exist"))
        assert not _generator(counter_config, config=config).generate()

    def test_missing_search_root(self, workdir, counter_config):
        config = CTConfig(search_root=str(workdir / "nowhere"))
        assert not _generator(counter_config, config=config).generate()


def test_injected_logger_receives_messages(workdir, caplog):
    caplog.set_level(logging.DEBUG)
    log = logging.getLogger("ct_test_sink")
    store = InMemoryCounterStore({0: [CounterRecord(0, 1, 0, "aie")]})
    assert not CTFileGenerator(store, JsonCounterConfig(GEOMETRY), log=log).generate()
    assert any(r.name == "ct_test_sink" for r in caplog.records)


def test_null_logger_is_silent(workdir, counter_config, caplog):
    caplog.set_level(logging.DEBUG)
    assert not _generator(counter_config, log=null_logger()).generate()
    assert caplog.records == []


def test_null_logger_does_not_stack_handlers():
    null_logger()
    log = null_logger()
    assert len(log.handlers) == 1
    assert not log.propagate


def test_negative_config_never_reaches_generator(tmp_path):
    path = tmp_path / "counters.json"
    path.write_text(
        '{"geometry": {"column_shift": 25, "row_shift": 20},'
        ' "devices": {"0": [{"column": -1, "row": 2, "counter_number": 0, "module": "aie"}]}}'
    )
    with pytest.raises(CTConfigError):
        JsonCounterConfig.from_file(path)
