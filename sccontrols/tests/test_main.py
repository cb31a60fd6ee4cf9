"""Tests for the command-line entry point."""

import json
import sys

import pytest

import main
from sccontrols import config, input_devices
from sccontrols.input_devices import JoystickInfo
from sccontrols.models import ControlOptionSettings, ControlsFile, DeviceInstanceSettings
from sccontrols.repository import load_controls, save_controls


ACTIONMAPS_XML = (
    '<ActionMaps version="1">\n'
    ' <ActionProfiles version="1" profileName="default">\n'
    '  <options type="joystick" instance="1" Product="VKB Gladiator NXT">\n'
    '   <flight_move_yaw invert="1"/>\n'
    '  </options>\n'
    ' </ActionProfiles>\n'
    '</ActionMaps>\n'
)


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "_config_dir", lambda: tmp_path)
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        main.main(argv)
    return exc.value.code


class TestCommands:
    def test_show(self, tmp_path, capsys):
        controls = ControlsFile.new("Shown")
        controls.devices.keyboard = DeviceInstanceSettings(
            options={"v_roll": ControlOptionSettings(invert=True)},
        )
        path = save_controls(controls, tmp_path / "shown.sccontrols")

        assert _run(["show", str(path)]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["profile_name"] == "Shown"
        assert out["devices"]["keyboard"]["v_roll"] == {"invert": True}

    def test_import(self, tmp_path):
        actionmaps = tmp_path / "actionmaps.xml"
        actionmaps.write_text(ACTIONMAPS_XML, encoding="utf-8")
        output = tmp_path / "out.sccontrols"

        assert _run(["import", str(actionmaps), str(output), "--profile-name", "Imported"]) == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["profile_name"] == "Imported"
        assert data["devices"]["joystick"]["1"]["options"]["flight_move_yaw"] == {"invert": True}

    def test_inspect(self, tmp_path, capsys):
        actionmaps = tmp_path / "actionmaps.xml"
        actionmaps.write_text(ACTIONMAPS_XML, encoding="utf-8")

        assert _run(["inspect", str(actionmaps)]) == 0
        assert '<flight_move_yaw invert="1"/>' in capsys.readouterr().out

    def test_apply_remembers_controls_file(self, tmp_path):
        actionmaps = tmp_path / "actionmaps.xml"
        actionmaps.write_text(ACTIONMAPS_XML, encoding="utf-8")
        controls = ControlsFile.new("Applied")
        controls.devices.joystick = {
            "1": DeviceInstanceSettings(options={"flight_move_yaw": ControlOptionSettings(invert=False)}),
        }
        path = save_controls(controls, tmp_path / "applied.sccontrols")

        assert _run(["apply", str(path), str(actionmaps), "--no-backup"]) == 0
        assert '<flight_move_yaw invert="0"/>' in actionmaps.read_text(encoding="utf-8")
        assert not list(tmp_path.glob("*.bak"))
        assert config.AppConfig.load().last_controls_file == str(path.resolve())

    def test_missing_file_exits_nonzero(self, tmp_path, capsys):
        assert _run(["show", str(tmp_path / "missing.sccontrols")]) == 1
        assert "error:" in capsys.readouterr().err

    def test_invalid_controls_file(self, tmp_path, capsys):
        bad = tmp_path / "bad.sccontrols"
        bad.write_text("[]", encoding="utf-8")
        assert _run(["show", str(bad)]) == 1
        assert "Failed to parse controls file" in capsys.readouterr().err

    def test_inspect_non_utf8_exits_nonzero(self, tmp_path, capsys):
        actionmaps = tmp_path / "actionmaps.xml"
        actionmaps.write_bytes(b'<options type="joystick" instance="1" Product="\xff"/>')
        assert _run(["inspect", str(actionmaps)]) == 1
        assert "UTF-8" in capsys.readouterr().err


class TestJoystickCommands:
    STICKS = [
        JoystickInfo(index=0, name="VKB Gladiator NXT", num_axes=6, num_buttons=30),
        JoystickInfo(index=1, name="Thrustmaster T.16000M", num_axes=4, num_buttons=16),
    ]

    def test_devices_lists_instances(self, monkeypatch, capsys):
        monkeypatch.setattr(input_devices, "list_joysticks", lambda: self.STICKS)
        assert _run(["devices"]) == 0
        out = capsys.readouterr().out
        assert "js1: VKB Gladiator NXT (6 axes, 30 buttons)" in out
        assert "js2: Thrustmaster T.16000M" in out

    def test_devices_none_connected(self, monkeypatch, capsys):
        monkeypatch.setattr(input_devices, "list_joysticks", lambda: [])
        assert _run(["devices"]) == 0
        assert "No joysticks detected." in capsys.readouterr().out

    def test_save_labels_joysticks(self, tmp_path, monkeypatch):
        monkeypatch.setattr(input_devices, "list_joysticks", lambda: self.STICKS)
        payload = tmp_path / "payload.json"
        payload.write_text(json.dumps({
            "profile_name": "From UI",
            "devices": {"joystick": {"2": {"v_roll": {"invert": True}}}},
        }), encoding="utf-8")
        output = tmp_path / "ui.sccontrols"

        assert _run(["save", str(payload), str(output)]) == 0
        controls = load_controls(output)
        assert controls.profile_name == "From UI"
        assert controls.devices.joystick["2"].product == "Thrustmaster T.16000M"

    def test_save_without_detection(self, tmp_path, monkeypatch):
        def _fail():
            raise AssertionError("joysticks should not be enumerated")

        monkeypatch.setattr(input_devices, "list_joysticks", _fail)
        payload = tmp_path / "payload.json"
        payload.write_text(json.dumps({
            "profile_name": "P",
            "devices": {"joystick": {"1": {"v_roll": {"invert": False}}}},
        }), encoding="utf-8")
        output = tmp_path / "ui.sccontrols"

        assert _run(["save", str(payload), str(output), "--no-detect"]) == 0
        assert load_controls(output).devices.joystick["1"].product is None

    def test_save_bad_payload_exits_nonzero(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(input_devices, "list_joysticks", lambda: [])
        payload = tmp_path / "payload.json"
        payload.write_text(json.dumps({
            "profile_name": "P",
            "devices": {"keyboard": {"v_roll": {"exponent": "steep"}}},
        }), encoding="utf-8")
        assert _run(["save", str(payload), str(tmp_path / "out.sccontrols")]) == 1
        assert "exponent" in capsys.readouterr().err
