"""Tests for the .sccontrols / actionmaps.xml file repository."""

import textwrap
from pathlib import Path
from xml.etree import ElementTree as ET

import pytest

from sccontrols.json_io import FormatError
from sccontrols.models import (
    ControlOptionSettings,
    ControlsFile,
    CurveData,
    CurvePoint,
    DeviceInstanceSettings,
    DeviceSettings,
)
from sccontrols.repository import (
    apply_controls_to_actionmaps,
    backup_actionmaps,
    find_actionmaps_path,
    import_controls_from_actionmaps,
    load_controls,
    save_controls,
    scan_installations,
)
from sccontrols.xml_io import XmlSyntaxError, parse_actionmaps_options


ACTIONMAPS_XML = textwrap.dedent("""\
    <ActionMaps version="1" optionsVersion="2" rebindVersion="2" profileName="default">
     <ActionProfiles version="1" optionsVersion="2" rebindVersion="2" profileName="default">
      <options type="keyboard" instance="1" Product="Keyboard"/>
      <options type="joystick" instance="1" Product="VKB Gladiator NXT">
       <flight_move_pitch invert="0" exponent="1.5">
        <nonlinearity_curve>
         <point in="0.5" out="0.25"/>
        </nonlinearity_curve>
       </flight_move_pitch>
      </options>
      <modifiers/>
      <actionmap name="spaceship_movement">
       <action name="v_pitch">
        <rebind input="js1_y"/>
       </action>
      </actionmap>
     </ActionProfiles>
    </ActionMaps>
""")


def _make_install(tmp_path: Path, channel: str = "LIVE", text: str = ACTIONMAPS_XML) -> Path:
    install = tmp_path / "StarCitizen" / channel
    profile_dir = install / "user" / "client" / "0" / "Profiles" / "default"
    profile_dir.mkdir(parents=True)
    (profile_dir / "actionmaps.xml").write_text(text, encoding="utf-8")
    return install


def _controls() -> ControlsFile:
    return ControlsFile(
        profile_name="Mine",
        devices=DeviceSettings(
            joystick={
                "1": DeviceInstanceSettings(
                    product="VKB Gladiator NXT",
                    options={
                        "flight_move_pitch": ControlOptionSettings(invert=True, exponent=3.0),
                        "flight_move_roll": ControlOptionSettings(
                            curve_mode="curve", curve=CurveData([CurvePoint(0.5, 0.1)]),
                        ),
                    },
                ),
            },
        ),
    )


class TestInstallations:
    def test_scan_finds_channels(self, tmp_path):
        _make_install(tmp_path, "LIVE")
        _make_install(tmp_path, "PTU")
        found = scan_installations(tmp_path / "StarCitizen")
        assert [p.name for p in found] == ["LIVE", "PTU"]

    def test_scan_channel_dir_itself(self, tmp_path):
        install = _make_install(tmp_path)
        assert scan_installations(install) == [install]

    def test_scan_missing_dir(self, tmp_path):
        assert scan_installations(tmp_path / "nope") == []

    def test_find_actionmaps(self, tmp_path):
        install = _make_install(tmp_path)
        path = find_actionmaps_path(install)
        assert path is not None
        assert path.name == "actionmaps.xml"

    def test_find_actionmaps_not_run_yet(self, tmp_path):
        (tmp_path / "LIVE").mkdir()
        assert find_actionmaps_path(tmp_path / "LIVE") is None


class TestBackup:
    def test_backup_copies_file(self, tmp_path):
        src = tmp_path / "actionmaps.xml"
        src.write_text("<ActionMaps/>", encoding="utf-8")
        dest = backup_actionmaps(src)
        assert dest.parent == tmp_path
        assert dest.name.startswith("actionmaps.xml.")
        assert dest.suffix == ".bak"
        assert dest.read_text(encoding="utf-8") == "<ActionMaps/>"

    def test_backup_never_overwrites(self, tmp_path):
        src = tmp_path / "actionmaps.xml"
        src.write_text("<ActionMaps/>", encoding="utf-8")
        first = backup_actionmaps(src)
        second = backup_actionmaps(src)
        assert first != second
        assert first.exists() and second.exists()


class TestSaveLoadControls:
    def test_save_and_load(self, tmp_path):
        controls = _controls()
        out = save_controls(controls, tmp_path / "mine.sccontrols")
        assert controls.last_modified is not None
        assert load_controls(out) == controls

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_controls(tmp_path / "missing.sccontrols")

    def test_load_invalid(self, tmp_path):
        bad = tmp_path / "bad.sccontrols"
        bad.write_text('{"version": "1.0"}', encoding="utf-8")
        with pytest.raises(FormatError):
            load_controls(bad)


class TestImportFromActionmaps:
    def test_import(self, tmp_path):
        install = _make_install(tmp_path)
        controls = import_controls_from_actionmaps(find_actionmaps_path(install))
        assert controls.profile_name == "LIVE"
        pitch = controls.devices.joystick["1"].options["flight_move_pitch"]
        assert pitch.invert is False
        assert pitch.exponent == 1.5
        assert pitch.curve_mode == "curve"
        assert pitch.curve.points == [CurvePoint(0.5, 0.25)]
        assert controls.devices.keyboard is None

    def test_import_with_name(self, tmp_path):
        install = _make_install(tmp_path)
        controls = import_controls_from_actionmaps(find_actionmaps_path(install), "Custom")
        assert controls.profile_name == "Custom"

    def test_import_malformed(self, tmp_path):
        install = _make_install(tmp_path, text="<ActionMaps><options></ActionMaps>")
        with pytest.raises(XmlSyntaxError):
            import_controls_from_actionmaps(find_actionmaps_path(install))


class TestApplyToActionmaps:
    def test_apply_updates_invert_and_keeps_game_settings(self, tmp_path):
        path = find_actionmaps_path(_make_install(tmp_path))
        result = apply_controls_to_actionmaps(path, _controls())
        assert result.success, result.message
        assert result.backup_path is not None
        assert Path(result.backup_path).read_text(encoding="utf-8") == ACTIONMAPS_XML

        text = path.read_text(encoding="utf-8")
        devices = parse_actionmaps_options(text)
        stick = devices[1]
        assert [o.name for o in stick.options] == ["flight_move_pitch"]
        pitch = stick.options[0]
        # invert written, the game's exponent and curve kept, ours not written
        assert pitch.attributes == [("invert", "1"), ("exponent", "1.5")]
        assert [(p.in_val, p.out_val) for p in pitch.curve_points] == [("0.5", "0.25")]

    def test_apply_leaves_rest_of_document(self, tmp_path):
        path = find_actionmaps_path(_make_install(tmp_path))
        apply_controls_to_actionmaps(path, _controls())
        text = path.read_text(encoding="utf-8")
        assert '<options type="keyboard" instance="1" Product="Keyboard"/>' in text
        assert '<rebind input="js1_y"/>' in text
        assert text.startswith('<ActionMaps version="1"')

    def test_apply_without_backup(self, tmp_path):
        path = find_actionmaps_path(_make_install(tmp_path))
        result = apply_controls_to_actionmaps(path, _controls(), backup=False)
        assert result.success
        assert result.backup_path is None
        assert not list(path.parent.glob("*.bak"))

    def test_apply_nothing_transferable(self, tmp_path):
        path = find_actionmaps_path(_make_install(tmp_path))
        controls = ControlsFile(profile_name="Inert", devices=DeviceSettings(
            keyboard=DeviceInstanceSettings(options={
                "v_roll": ControlOptionSettings(curve_mode="exponent", exponent=2.0),
            }),
        ))
        result = apply_controls_to_actionmaps(path, controls)
        assert not result.success
        assert path.read_text(encoding="utf-8") == ACTIONMAPS_XML

    def test_apply_malformed_leaves_file(self, tmp_path):
        bad = "<ActionMaps><options type='joystick'></ActionMaps>"
        path = find_actionmaps_path(_make_install(tmp_path, text=bad))
        result = apply_controls_to_actionmaps(path, _controls())
        assert not result.success
        assert "XML parse error" in result.message
        assert path.read_text(encoding="utf-8") == bad
        assert not list(path.parent.glob("*.bak"))

    def test_apply_keeps_escaped_product_well_formed(self, tmp_path):
        doc = ACTIONMAPS_XML.replace('Product="VKB Gladiator NXT"', 'Product="T &amp; F"')
        path = find_actionmaps_path(_make_install(tmp_path, text=doc))
        result = apply_controls_to_actionmaps(path, _controls())
        assert result.success, result.message

        text = path.read_text(encoding="utf-8")
        ET.fromstring(text)
        assert 'Product="T &amp; F"' in text
        assert 'invert="1"' in text

    def test_apply_keeps_crlf_line_endings(self, tmp_path):
        crlf = ACTIONMAPS_XML.replace("\n", "\r\n").encode("utf-8")
        path = find_actionmaps_path(_make_install(tmp_path))
        path.write_bytes(crlf)

        result = apply_controls_to_actionmaps(path, _controls())
        assert result.success, result.message

        data = path.read_bytes()
        assert b"\n" not in data.replace(b"\r\n", b"")
        assert b'    <rebind input="js1_y"/>\r\n' in data
        assert b'<flight_move_pitch invert="1" exponent="1.5">\r\n' in data
        assert Path(result.backup_path).read_bytes() == crlf

    def test_apply_non_utf8_file_fails_cleanly(self, tmp_path):
        path = find_actionmaps_path(_make_install(tmp_path))
        raw = ACTIONMAPS_XML.replace("VKB Gladiator NXT", "Manette Sans Fil é").encode("latin-1")
        path.write_bytes(raw)

        result = apply_controls_to_actionmaps(path, _controls())
        assert not result.success
        assert "UTF-8" in result.message
        assert path.read_bytes() == raw

    def test_import_non_utf8_file(self, tmp_path):
        path = find_actionmaps_path(_make_install(tmp_path))
        path.write_bytes(b'<ActionMaps><options type="joystick" instance="1" Product="\xff"/></ActionMaps>')
        with pytest.raises(XmlSyntaxError):
            import_controls_from_actionmaps(path)

    def test_apply_missing_file(self, tmp_path):
        result = apply_controls_to_actionmaps(tmp_path / "actionmaps.xml", _controls())
        assert not result.success
