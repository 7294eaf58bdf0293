"""Tests for the Mode 01 PID registry."""

import pytest

from obdcore.decoders import (
    PID_DECODERS, PidSpec, decode, decode_supported_pids,
    extend_table, is_truncated, zero_extend,
)


class TestDocumentedFormulas:

    def test_rpm(self):
        """((A<<8)+B)/4"""
        assert decode("010C", [0x1A, 0xF8]) == {"rpm": 1726}
        assert decode("010C", [0x0F, 0xA0]) == {"rpm": 1000}

    def test_speed(self):
        assert decode("010D", [100]) == {"speed_kph": 100}

    def test_temperatures(self):
        assert decode("0105", [0x5A]) == {"coolant_c": 50}
        assert decode("010F", [0x00]) == {"iat_c": -40}

    def test_maf(self):
        assert decode("0110", [0x01, 0x2C]) == {"maf_gps": 3.0}

    def test_map(self):
        assert decode("010B", [0x65]) == {"map_kpa": 101}

    def test_throttle(self):
        assert decode("0111", [255]) == {"throttle_pct": 100.0}
        assert decode("0111", [0]) == {"throttle_pct": 0.0}
        # 128 * 10000 / 255 = 5019.6 -> 5020
        assert decode("0111", [128]) == {"throttle_pct": 50.2}

    def test_fuel_trims(self):
        assert decode("0106", [128]) == {"stft1_pct": 0.0}
        assert decode("0106", [192]) == {"stft1_pct": 50.0}
        assert decode("0107", [64]) == {"ltft1_pct": -50.0}

    def test_trim_half_rounds_up(self):
        # (132 - 128) * 10000 / 128 = 312.5
        assert decode("0106", [132]) == {"stft1_pct": 3.13}
        # (124 - 128) * 10000 / 128 = -312.5
        assert decode("0107", [124]) == {"ltft1_pct": -3.12}

    def test_key_case_insensitive(self):
        assert decode("010c", [0x1A, 0xF8]) == {"rpm": 1726}


class TestFallbacks:

    def test_unknown_key_returns_raw(self):
        assert decode("01FF", [1, 2, 3]) == {"raw": [1, 2, 3]}
        assert decode("0902", []) == {"raw": []}

    def test_short_frames_zero_extended(self):
        assert decode("010C", []) == {"rpm": 0}
        assert decode("010C", [0x1A]) == {"rpm": (0x1A << 8) / 4}
        assert decode("0105", []) == {"coolant_c": -40}

    def test_is_truncated(self):
        assert is_truncated("010C", [0x1A])
        assert not is_truncated("010C", [0x1A, 0xF8])
        assert not is_truncated("01FF", [])

    def test_zero_extend(self):
        assert zero_extend([1], 3) == [1, 0, 0]
        assert zero_extend([1, 2, 3], 2) == [1, 2]

    def test_idempotent(self):
        assert decode("0110", [0x12, 0x34]) == decode("0110", [0x12, 0x34])


class TestExtraPids:

    @pytest.mark.parametrize("key,data,expected", [
        ("0104", [255], {"engine_load_pct": 100.0}),
        ("010A", [100], {"fuel_pressure_kpa": 300}),
        ("010E", [128], {"timing_advance_deg": 0.0}),
        ("011F", [0x01, 0x00], {"runtime_s": 256}),
        ("0133", [101], {"baro_kpa": 101}),
        ("0142", [0x32, 0x00], {"module_voltage_v": 12.8}),
        ("0146", [60], {"ambient_c": 20}),
    ])
    def test_values(self, key, data, expected):
        assert decode(key, data) == expected

    def test_monitor_status(self):
        assert decode("0101", [0x83, 0x07, 0x65, 0x00]) == {"mil": True, "dtc_count": 3}
        assert decode("0101", [0x00]) == {"mil": False, "dtc_count": 0}


class TestTable:

    def test_read_only(self):
        with pytest.raises(TypeError):
            PID_DECODERS["01FF"] = PidSpec("01FF", 1, lambda d: {})

    def test_extend_table(self):
        table = extend_table([PidSpec("015C", 1, lambda d: {"oil_c": d[0] - 40})])
        assert decode("015C", [100], table) == {"oil_c": 60}
        assert decode("015C", [100]) == {"raw": [100]}
        assert decode("010D", [5], table) == {"speed_kph": 5}


class TestSupportedPids:

    def test_bitmap(self):
        # BE 1F A8 13 -> 01,03,04,05,06,07,0C,0D,0E,0F,10,11,13,15,1C,1F,20
        pids = decode_supported_pids(0x00, [0xBE, 0x1F, 0xA8, 0x13])
        assert pids == [0x01, 0x03, 0x04, 0x05, 0x06, 0x07, 0x0C, 0x0D, 0x0E,
                        0x0F, 0x10, 0x11, 0x13, 0x15, 0x1C, 0x1F, 0x20]

    def test_offset_base(self):
        assert decode_supported_pids(0x20, [0x80, 0, 0, 0x01]) == [0x21, 0x40]

    def test_short_bitmap(self):
        assert decode_supported_pids(0x00, [0x80]) == [0x01]
