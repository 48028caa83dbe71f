"""
Simulated Host Tests
====================

Tests for the deterministic pack simulation used by the service.
"""

import pytest

from battmon.host.simulated import PLAYED_HISTORY, SimulatedHost


@pytest.fixture
def host():
    return SimulatedHost(cell_count=4, capacity_mah=2000, current_amps=36.0, noise_volts=0.0)


class TestDischarge:
    """Tests for consumption and cell voltage."""

    def test_step_integrates_consumption(self, host):
        """36 A for 100 s consumes 1000 mAh."""
        host.step(100.0)
        assert host.used_mah == pytest.approx(1000.0)
        assert host.read_sensor("mAh") == 1000

    def test_full_pack_reads_full_cells(self, host):
        assert host.read_sensor("Cels") == (4.2, 4.2, 4.2, 4.2)

    def test_replace_battery_restarts_consumption(self, host):
        host.step(50.0)
        host.replace_battery()
        assert host.read_sensor("mAh") == 0


class TestSounds:
    """Tests for sound request bookkeeping."""

    def test_played_history_is_bounded(self, host):
        """Only recent requests are kept; the counter covers all of them."""
        for i in range(PLAYED_HISTORY + 10):
            host.play(f"/sounds/{i}.wav")

        assert len(host.played) == PLAYED_HISTORY
        assert host.played[-1] == f"/sounds/{PLAYED_HISTORY + 9}.wav"
        assert host.played_count == PLAYED_HISTORY + 10
