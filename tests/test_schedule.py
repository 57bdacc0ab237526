import unittest
from datetime import datetime
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from outage_monitor.services.schedule import (
    SlotCode, SlotTime, OutageWindow, parse_day, current_slot, slot_to_time,
    get_scheduled_restoration, get_next_scheduled_outage,
)

def at(hour, minute=0):
    return datetime(2024, 1, 3, hour, minute)

def day_with_off(*slots):
    """48 ON slots with the given indexes OFF"""
    return [i not in slots for i in range(48)]

ALL_ON = [True] * 48
ALL_OFF = [False] * 48

class TestParseDay(unittest.TestCase):
    """Feed hour codes to half-hour slots"""

    def test_each_code_for_every_hour(self):
        expected = {
            "no": (False, False),
            "first": (False, True),
            "second": (True, False),
            "yes": (True, True),
        }
        for code, halves in expected.items():
            for hour in range(1, 25):
                slots = parse_day({str(hour): code})
                self.assertEqual(len(slots), 48)
                index = (hour - 1) * 2
                self.assertEqual((slots[index], slots[index + 1]), halves, f"{code} at hour {hour}")
                others = slots[:index] + slots[index + 2:]
                self.assertTrue(all(others))

    def test_first_at_hour_three(self):
        slots = parse_day({"3": "first"})
        self.assertFalse(slots[4])
        self.assertTrue(slots[5])

    def test_missing_and_unknown_codes_mean_power_on(self):
        self.assertEqual(parse_day({}), ALL_ON)
        self.assertEqual(parse_day(None), ALL_ON)
        self.assertEqual(parse_day({"1": "maybe", "2": None}), ALL_ON)

    def test_full_day_off(self):
        self.assertEqual(parse_day({str(h): "no" for h in range(1, 25)}), ALL_OFF)

    def test_slot_code_default(self):
        self.assertIs(SlotCode.from_raw("no"), SlotCode.OFF)
        self.assertIs(SlotCode.from_raw("first"), SlotCode.FIRST_HALF_OFF)
        self.assertIs(SlotCode.from_raw("second"), SlotCode.SECOND_HALF_OFF)
        self.assertIs(SlotCode.from_raw("garbage"), SlotCode.ON)
        self.assertIs(SlotCode.from_raw(None), SlotCode.ON)

class TestSlotTimes(unittest.TestCase):

    def test_current_slot(self):
        self.assertEqual(current_slot(at(0, 0)), 0)
        self.assertEqual(current_slot(at(0, 29)), 0)
        self.assertEqual(current_slot(at(0, 30)), 1)
        self.assertEqual(current_slot(at(23, 59)), 47)

    def test_slot_to_time(self):
        self.assertEqual(slot_to_time(0), "00:00")
        self.assertEqual(slot_to_time(5), "02:30")
        self.assertEqual(slot_to_time(47), "23:30")
        self.assertEqual(slot_to_time(48), "00:00")
        self.assertEqual(slot_to_time(62), "07:00")

class TestScheduledRestoration(unittest.TestCase):

    def test_restores_at_first_on_slot_today(self):
        today = [False] * 4 + [True] * 44
        result = get_scheduled_restoration(today, None, at(1, 15))
        self.assertEqual(result, SlotTime(4))
        self.assertEqual(str(result), "02:00")
        self.assertFalse(result.next_day)

    def test_unplanned_outage_has_no_estimate(self):
        today = day_with_off(30, 31, 32)
        self.assertIsNone(get_scheduled_restoration(today, ALL_ON, at(10, 0)))

    def test_current_slot_is_searched_first(self):
        today = day_with_off(20, 21)
        self.assertEqual(get_scheduled_restoration(today, None, at(10, 45)).clock, "11:00")

    def test_restoration_tomorrow(self):
        tomorrow = [False] * 6 + [True] * 42
        result = get_scheduled_restoration(day_with_off(*range(40, 48)), tomorrow, at(21, 0))
        self.assertTrue(result.next_day)
        self.assertEqual(result.clock, "03:00")

    def test_no_on_slot_anywhere(self):
        self.assertIsNone(get_scheduled_restoration(ALL_OFF, ALL_OFF, at(12, 0)))
        self.assertIsNone(get_scheduled_restoration(ALL_OFF, None, at(12, 0)))

    def test_no_schedule_data(self):
        self.assertIsNone(get_scheduled_restoration(None, None, at(12, 0)))
        self.assertIsNone(get_scheduled_restoration([False] * 10, None, at(1, 0)))
        self.assertIsNone(get_scheduled_restoration(None, ALL_OFF, at(12, 0)))

    def test_only_tomorrow_known(self):
        tomorrow = [False] * 4 + [True] * 44
        self.assertEqual(get_scheduled_restoration(None, tomorrow, at(23, 10)), SlotTime(4, next_day=True))
        self.assertEqual(get_scheduled_restoration([False] * 10, tomorrow, at(23, 10)).clock, "02:00")

class TestNextScheduledOutage(unittest.TestCase):

    def test_run_length_of_next_block(self):
        today = day_with_off(10, 11, 12, 13)
        self.assertEqual(
            get_next_scheduled_outage(today, None, at(2, 30)),
            OutageWindow(start="05:00", end="07:00"),
        )

    def test_skips_block_in_progress(self):
        today = day_with_off(10, 11, 12, 13, 30, 31)
        self.assertEqual(
            get_next_scheduled_outage(today, None, at(5, 40)),
            OutageWindow(start="15:00", end="16:00"),
        )

    def test_block_in_tomorrow(self):
        tomorrow = day_with_off(4, 5, 6)
        self.assertEqual(
            get_next_scheduled_outage(ALL_ON, tomorrow, at(20, 0)),
            OutageWindow(start="02:00", end="03:30"),
        )

    def test_block_spanning_midnight(self):
        today = day_with_off(46, 47)
        tomorrow = day_with_off(0, 1, 2)
        self.assertEqual(
            get_next_scheduled_outage(today, tomorrow, at(12, 0)),
            OutageWindow(start="23:00", end="01:30"),
        )

    def test_block_running_to_end_of_data(self):
        today = day_with_off(44, 45, 46, 47)
        self.assertEqual(
            get_next_scheduled_outage(today, None, at(8, 0)),
            OutageWindow(start="22:00", end="00:00"),
        )

    def test_none_found(self):
        self.assertIsNone(get_next_scheduled_outage(ALL_ON, ALL_ON, at(8, 0)))
        self.assertIsNone(get_next_scheduled_outage(day_with_off(2, 3), ALL_ON, at(8, 0)))
        self.assertIsNone(get_next_scheduled_outage(None, day_with_off(2), at(8, 0)))

    def test_whole_remaining_timeline_off(self):
        self.assertIsNone(get_next_scheduled_outage(ALL_OFF, ALL_OFF, at(8, 0)))

if __name__ == '__main__':
    unittest.main()
