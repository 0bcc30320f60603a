"""Tests for BIOS dump parsing and patch builders."""

import dataclasses

import pytest

from conftest import (
    BOARD_SERIAL,
    CONSOLE_SERIAL,
    DIGITAL_TAG,
    DISC_TAG,
    SLIM_TAG,
    build_dump,
)
from uart_cl.bios_dump import (
    CONSOLE_SERIAL_LEN,
    EDITION_TAG_A_OFFSET,
    MODEL_LEN,
    MODEL_OFFSET,
    BiosDumpError,
    Decoded,
    Edition,
    EditionAlreadySet,
    Placeholder,
    TruncatedImage,
    console_serial_patch,
    edition_patches,
    load_bios_dump,
    model_patch,
    motherboard_serial_patch,
    parse_bios_dump,
    resolve_edition,
)
from uart_cl.field_patcher import FieldPatcher


class TestResolveEdition:
    """Edition resolution from tag hex text."""

    def test_disc_tag_a_wins_over_slim_tag_b(self):
        assert resolve_edition("220201010000", "220101010000") is Edition.DISC

    def test_digital_tag_b_wins_over_slim_tag_a(self):
        assert resolve_edition("220101010000", "220301010000") is Edition.DIGITAL

    def test_slim_in_either_tag(self):
        assert resolve_edition("000000000000", "220101010000") is Edition.SLIM
        assert resolve_edition("220101010000", "000000000000") is Edition.SLIM

    def test_no_known_tag(self):
        assert resolve_edition("000000000000", "000000000000") is Edition.UNKNOWN

    def test_digital_only_counts_in_tag_b(self):
        assert resolve_edition("220301010000", "000000000000") is Edition.UNKNOWN

    def test_lowercase_hex(self):
        assert resolve_edition("220201010000".lower(), "") is Edition.DISC


class TestParseBiosDump:
    """Reading identity fields out of an image."""

    def test_disc_dump_fields(self):
        dump = parse_bios_dump(build_dump())

        assert dump.edition is Edition.DISC
        assert dump.model == Decoded("CFI-1015A")
        assert dump.model_info == "CFI-1015A - US, Canada, (North America)"
        assert dump.console_serial_number == CONSOLE_SERIAL.decode()
        assert dump.motherboard_serial_number == BOARD_SERIAL.decode()
        assert dump.wifi_mac_address == "00-1A-2B-3C-4D-5E"
        assert dump.lan_mac_address == "AA-BB-CC-DD-EE-01"

    def test_slim_and_digital_dumps(self):
        assert parse_bios_dump(build_dump(tag_a=SLIM_TAG)).edition is Edition.SLIM
        digital = build_dump(tag_a=b"", tag_b=DIGITAL_TAG)
        assert parse_bios_dump(digital).edition is Edition.DIGITAL

    def test_unknown_region_suffix(self):
        dump = parse_bios_dump(build_dump(model=b"CFI-1ZZZ"))
        assert dump.region == "Unknown Region"
        assert dump.model_info == "CFI-1ZZZ - Unknown Region"

    def test_parsing_does_not_modify_buffer(self):
        data = bytearray(build_dump())
        original = bytes(data)
        parse_bios_dump(data)
        assert bytes(data) == original

    def test_image_too_short_for_model_is_rejected(self):
        with pytest.raises(TruncatedImage):
            parse_bios_dump(build_dump(size=MODEL_OFFSET + MODEL_LEN - 1))

    def test_image_too_short_for_tags_is_rejected(self):
        with pytest.raises(TruncatedImage):
            parse_bios_dump(bytes(EDITION_TAG_A_OFFSET))

    def test_truncated_image_is_a_dump_error(self):
        with pytest.raises(BiosDumpError):
            parse_bios_dump(b"")

    def test_out_of_range_optional_fields_become_placeholders(self):
        dump = parse_bios_dump(build_dump(size=MODEL_OFFSET + MODEL_LEN))

        assert dump.model_name == "CFI-1015A"
        assert isinstance(dump.wifi_mac, Placeholder)
        assert dump.wifi_mac_address == "Unknown Mac Address"
        # LAN MAC sits below the model field and is still readable
        assert dump.lan_mac_address == "AA-BB-CC-DD-EE-01"

    def test_to_dict_uses_display_values(self):
        values = parse_bios_dump(build_dump(size=MODEL_OFFSET + MODEL_LEN)).to_dict()

        assert values["edition"] == "Disc"
        assert values["model"] == "CFI-1015A"
        assert values["region"] == "US, Canada, (North America)"
        assert values["wifi_mac"] == "Unknown Mac Address"
        assert values["size"] == MODEL_OFFSET + MODEL_LEN

    def test_load_bios_dump(self, dump_file):
        dump = load_bios_dump(dump_file())
        assert dump.edition is Edition.DISC

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_bios_dump(tmp_path / "missing.bin")


class TestEditionPatches:
    """Tag rewrites for edition conversion."""

    def test_disc_to_digital(self):
        dump = parse_bios_dump(build_dump(tag_a=DISC_TAG, tag_b=DISC_TAG))
        patches = edition_patches(dump, Edition.DIGITAL)

        assert {p.find for p in patches} == {DISC_TAG, SLIM_TAG}
        assert all(p.replace == DIGITAL_TAG for p in patches)

        report = FieldPatcher().apply(dump.raw, patches)
        assert parse_bios_dump(report.data).edition is Edition.DIGITAL

    def test_digital_to_disc(self):
        dump = parse_bios_dump(build_dump(tag_a=DIGITAL_TAG, tag_b=DIGITAL_TAG))
        report = FieldPatcher().apply(dump.raw, edition_patches(dump, Edition.DISC))
        assert parse_bios_dump(report.data).edition is Edition.DISC

    def test_target_already_present(self):
        dump = parse_bios_dump(build_dump(tag_a=DISC_TAG))
        with pytest.raises(EditionAlreadySet):
            edition_patches(dump, Edition.DISC)

    def test_target_present_in_tag_b_only(self):
        dump = parse_bios_dump(build_dump(tag_a=DISC_TAG, tag_b=SLIM_TAG))
        with pytest.raises(EditionAlreadySet):
            edition_patches(dump, Edition.SLIM)

    def test_unknown_target_rejected(self):
        dump = parse_bios_dump(build_dump())
        with pytest.raises(ValueError):
            edition_patches(dump, Edition.UNKNOWN)


class TestFieldPatchBuilders:
    """Serial and model patch construction."""

    def test_console_serial_patch_pads_with_zeros(self):
        dump = parse_bios_dump(build_dump())
        patch = console_serial_patch(dump, "NEW123")

        assert patch.find == CONSOLE_SERIAL
        assert len(patch.replace) == CONSOLE_SERIAL_LEN
        assert patch.replace == b"NEW123" + b"\x00" * 11

    def test_console_serial_patch_truncates(self):
        dump = parse_bios_dump(build_dump())
        patch = console_serial_patch(dump, "X" * 30)
        assert patch.replace == b"X" * CONSOLE_SERIAL_LEN

    def test_motherboard_serial_patch(self):
        dump = parse_bios_dump(build_dump())
        patch = motherboard_serial_patch(dump, "NB0000000000FFFF")

        assert patch.find == BOARD_SERIAL
        assert patch.replace == b"NB0000000000FFFF"

    def test_motherboard_serial_wrong_length(self):
        dump = parse_bios_dump(build_dump())
        with pytest.raises(ValueError):
            motherboard_serial_patch(dump, "SHORT")

    def test_shorter_model_is_ff_padded(self):
        dump = parse_bios_dump(build_dump(model=b"CFI-1015A01"))
        patch = model_patch(dump, "CFI-1016A")

        assert patch.find == b"CFI-1015A01"
        assert patch.replace == b"CFI-1016A\xFF\xFF"

        report = FieldPatcher().apply(dump.raw, [patch])
        updated = parse_bios_dump(report.data)
        assert updated.model_name == "CFI-1016A"
        assert updated.region == "Europe / Middle East / Africa"

    def test_model_truncated_to_field_width(self):
        dump = parse_bios_dump(build_dump())
        patch = model_patch(dump, "CFI-1016A" + "9" * 20)
        assert len(patch.replace) == MODEL_LEN

    def test_model_patch_needs_decoded_model(self):
        dump = dataclasses.replace(parse_bios_dump(build_dump()), model=Placeholder("bad"))
        with pytest.raises(BiosDumpError):
            model_patch(dump, "CFI-1016A")


class TestSerialFields:
    """Serial decoding keeps every byte; blank serials are not patchable."""

    def test_ff_byte_in_console_serial_survives(self):
        dump = parse_bios_dump(build_dump(console_serial=b"AJ0123456789ABCD\xff"))
        assert dump.console_serial_number == "AJ0123456789ABCD\xff"

    def test_ff_pair_across_bytes_in_board_serial_survives(self):
        # 0x0F 0xF0 renders as "0FF0"; the serial must not lose the middle "FF"
        dump = parse_bios_dump(build_dump(board_serial=b"MB\x0f\xf0" + b"0" * 12))
        assert dump.motherboard_serial_number == "MB\x0f\xf0" + "0" * 12

    def test_serial_patch_searches_decoded_text(self):
        dump = parse_bios_dump(build_dump())
        assert console_serial_patch(dump, "NEW").find == CONSOLE_SERIAL.decode().encode("utf-8")
        assert motherboard_serial_patch(dump, "N" * 16).find == BOARD_SERIAL

    @pytest.mark.parametrize("fill", [b"\x00", b"\xff"])
    def test_blank_console_serial_rejected(self, fill):
        dump = parse_bios_dump(build_dump(console_serial=fill * CONSOLE_SERIAL_LEN))
        with pytest.raises(BiosDumpError):
            console_serial_patch(dump, "AJ99999999999ZZZZ")

    @pytest.mark.parametrize("fill", [b"\x00", b"\xff"])
    def test_blank_motherboard_serial_rejected(self, fill):
        dump = parse_bios_dump(build_dump(board_serial=fill * 16))
        with pytest.raises(BiosDumpError):
            motherboard_serial_patch(dump, "NB9999999999ZZZZ")

    def test_unreadable_serial_rejected(self):
        dump = dataclasses.replace(
            parse_bios_dump(build_dump()), console_serial=Placeholder("out of range")
        )
        with pytest.raises(BiosDumpError):
            console_serial_patch(dump, "AJ99999999999ZZZZ")
