"""Tests for schedule hole detection and containment checks."""
from epg_updater.models import MediaType
from epg_updater.services.config_snapshot import ConfigSnapshot
from epg_updater.services.hole_detector import detect_holes, find_holes, should_scan_for_holes
from epg_updater.services.update_types import ChannelSnapshot, Hole, HoleCollection, StoredProgramSnapshot

from helpers import at


def stored(start, end, program_id=1) -> StoredProgramSnapshot:
    return StoredProgramSnapshot(id=program_id, channel_id=1, start_time=start, end_time=end)


def channel(has_gaps: bool) -> ChannelSnapshot:
    return ChannelSnapshot(id=1, display_name="Test", media_type=MediaType.TV, grab_epg=True, epg_has_gaps=has_gaps)


class TestFindHoles:
    def test_gap_over_five_minutes_is_a_hole(self):
        holes = find_holes([stored(at(9), at(10)), stored(at(10, 30), at(11))])
        assert list(holes) == [Hole(at(10), at(10, 30))]

    def test_gap_of_exactly_five_minutes_is_not_a_hole(self):
        holes = find_holes([stored(at(9), at(10)), stored(at(10, 5), at(11))])
        assert len(holes) == 0

    def test_contiguous_and_single_programs(self):
        assert len(find_holes([stored(at(9), at(10)), stored(at(10), at(11))])) == 0
        assert len(find_holes([stored(at(9), at(10))])) == 0
        assert len(find_holes([])) == 0

    def test_holes_in_schedule_order(self):
        holes = find_holes([
            stored(at(8), at(9)),
            stored(at(9, 30), at(10)),
            stored(at(12), at(13)),
        ])
        assert list(holes) == [Hole(at(9), at(9, 30)), Hole(at(10), at(12))]


class TestFitsInAnyHole:
    def test_containment_is_inclusive(self):
        holes = HoleCollection([Hole(at(10), at(10, 30))])
        assert holes.fits_in_any_hole(at(10), at(10, 30))
        assert holes.fits_in_any_hole(at(10, 5), at(10, 25))

    def test_overlap_is_not_enough(self):
        holes = HoleCollection([Hole(at(10), at(10, 30))])
        assert not holes.fits_in_any_hole(at(10, 5), at(10, 40))
        assert not holes.fits_in_any_hole(at(9, 55), at(10, 20))

    def test_no_holes(self):
        assert not HoleCollection().fits_in_any_hole(at(10), at(10, 5))


class TestScanPrecondition:
    programs = [stored(at(9), at(10)), stored(at(11), at(12))]

    def test_skipped_without_gap_flag(self):
        assert len(detect_holes(channel(False), self.programs, ConfigSnapshot())) == 0

    def test_runs_for_gappy_channel(self):
        assert len(detect_holes(channel(True), self.programs, ConfigSnapshot())) == 1

    def test_always_fill_holes_forces_scan(self):
        config = ConfigSnapshot(always_fill_holes=True)
        assert should_scan_for_holes(channel(False), config)
        assert len(detect_holes(channel(False), self.programs, config)) == 1

    def test_always_replace_disables_scan(self):
        config = ConfigSnapshot(always_fill_holes=True, always_replace=True)
        assert not should_scan_for_holes(channel(True), config)
        assert len(detect_holes(channel(True), self.programs, config)) == 0
