import json

from px.modules.config import PxConfig
from px.modules.logger import Logger


def _cfg(tmp_path, body):
    conf = tmp_path / "px.conf"
    conf.write_text(body, encoding="utf-8")
    return PxConfig([str(conf)])


def test_level_filtering(tmp_path, capsys):
    log = Logger("t", cfg=_cfg(tmp_path, "[logging]\nlevel = warning\ncolor_output = no\n"))
    log.info("hidden")
    log.warning("shown")
    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "[t] [WARNING] shown" in err

    log.set_level("debug")
    log.debug("now visible")
    assert "now visible" in capsys.readouterr().err


def test_json_file_log(tmp_path, capsys):
    log_file = tmp_path / "logs" / "px.log"
    cfg = _cfg(tmp_path, f"[logging]\nlevel = info\nlog_file = {log_file}\nlog_format = json\nlog_to_console = no\n")
    log = Logger("catalog", cfg=cfg)
    log.info("built")
    assert capsys.readouterr().err == ""
    record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[0])
    assert record["logger"] == "catalog"
    assert record["level"] == "INFO"
    assert record["message"] == "built"


def test_rotation(tmp_path):
    log_file = tmp_path / "px.log"
    log_file.write_text("x" * 2048, encoding="utf-8")
    cfg = _cfg(tmp_path, f"[logging]\nlevel = info\nlog_file = {log_file}\nmax_log_size_kb = 1\nlog_to_console = no\n")
    Logger("t", cfg=cfg).error("fresh")
    assert (tmp_path / "px.log.1").exists()
    assert "fresh" in log_file.read_text(encoding="utf-8")
    assert "x" * 10 not in log_file.read_text(encoding="utf-8")
