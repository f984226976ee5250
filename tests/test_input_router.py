import unittest
from typing import Any, List, Tuple

from microsampler.app.input_router import InputRouter, KEYBOARD_OFFSETS, PianoLayout
from microsampler.app.tracker import NoteStateTracker
from microsampler.audio.synthesis import Sampler
from microsampler.theory.tuning import TuningConfig


class RecordingSampler(Sampler):
    def __init__(self) -> None:
        super().__init__(sample_rate=44100, gain=0.5)
        self.events: List[Tuple[Any, ...]] = []

    def play(self, sample: Any, ratio: float) -> int:
        self.events.append(("play", ratio))
        return len(self.events)

    def stop(self, voice: Any) -> None:
        self.events.append(("stop", voice))


class PianoLayoutTests(unittest.TestCase):
    def setUp(self) -> None:
        self.layout = PianoLayout()

    def test_white_keys(self) -> None:
        self.assertEqual(self.layout.offset_at(20, 300), 0)
        self.assertEqual(self.layout.offset_at(100, 300), 4)
        self.assertEqual(self.layout.offset_at(300, 300), 12)
        self.assertEqual(self.layout.offset_at(545, 300), 23)

    def test_black_keys_sit_on_top(self) -> None:
        self.assertEqual(self.layout.offset_at(30, 250), 1)
        self.assertEqual(self.layout.offset_at(250, 250), 10)
        self.assertEqual(self.layout.offset_at(280 + 30, 250), 13)
        # Same x below the black key is the white key
        self.assertEqual(self.layout.offset_at(30, 300), 0)

    def test_gap_without_black_key_is_white(self) -> None:
        # Between E and F there is no black key
        self.assertEqual(self.layout.offset_at(113, 250), 4)

    def test_outside_keyboard(self) -> None:
        self.assertIsNone(self.layout.offset_at(20, 100))
        self.assertIsNone(self.layout.offset_at(20, 351))
        self.assertIsNone(self.layout.offset_at(-1, 300))
        self.assertIsNone(self.layout.offset_at(560, 300))

    def test_keys_cover_two_spans(self) -> None:
        keys = self.layout.keys()
        self.assertEqual(len(keys), 24)
        self.assertEqual(sorted(k.offset for k in keys), list(range(24)))
        self.assertEqual(sum(1 for k in keys if k.black), 10)
        for k in keys:
            cx = k.x + k.width / 2
            cy = k.y + k.height - 1
            with self.subTest(offset=k.offset):
                self.assertTrue(k.contains(cx, cy))
                self.assertEqual(self.layout.offset_at(cx, cy), k.offset)


class InputRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sampler = RecordingSampler()
        self.tracker = NoteStateTracker(self.sampler, sample="piano")
        self.router = InputRouter(self.tracker)

    def test_keymap_spans_thirteen_notes(self) -> None:
        notes = [self.router.note_for_key(k) for k in KEYBOARD_OFFSETS]
        self.assertEqual(notes, list(range(60, 73)))

    def test_key_press_and_release(self) -> None:
        self.assertEqual(self.router.key_pressed("a"), 60)
        self.assertEqual(self.router.pressed, {60})
        self.assertEqual(self.tracker.engaged, frozenset({60}))
        self.router.key_released("a")
        self.assertEqual(self.router.pressed, set())
        self.assertEqual([e[0] for e in self.sampler.events], ["play", "stop"])

    def test_keys_are_case_insensitive(self) -> None:
        self.assertEqual(self.router.key_pressed("K"), 72)
        self.assertAlmostEqual(self.sampler.events[0][1], 2.0)

    def test_unmapped_keys_are_ignored(self) -> None:
        self.assertIsNone(self.router.key_pressed("z"))
        self.assertIsNone(self.router.key_released("z"))
        self.assertIsNone(self.router.key_pressed(""))
        self.assertEqual(self.sampler.events, [])

    def test_key_repeat_retriggers(self) -> None:
        self.router.key_pressed("s")
        self.router.key_pressed("s")
        self.assertEqual([e[0] for e in self.sampler.events], ["play", "stop", "play"])

    def test_pointer_press_and_release(self) -> None:
        self.assertEqual(self.router.pointer_pressed(30, 250), 61)
        self.assertEqual(self.router.pointer_pressed(300, 300), 72)
        self.router.pointer_released()
        self.assertEqual(self.tracker.engaged, frozenset())
        self.assertEqual(self.router.pressed, set())
        self.assertEqual([e[0] for e in self.sampler.events], ["play", "play", "stop", "stop"])

    def test_pointer_outside_keyboard(self) -> None:
        self.assertIsNone(self.router.pointer_pressed(10, 10))
        self.router.pointer_released()
        self.assertEqual(self.sampler.events, [])

    def test_focus_lost_releases_keyboard_notes(self) -> None:
        self.router.key_pressed("a")
        self.router.key_pressed("d")
        self.router.focus_lost()
        self.assertEqual(self.tracker.engaged, frozenset())

    def test_release_after_base_change_stops_pressed_note(self) -> None:
        self.assertEqual(self.router.key_pressed("a"), 60)
        self.tracker.set_tuning(TuningConfig(base_index=48))
        self.assertEqual(self.router.key_released("a"), 60)
        self.assertEqual(self.tracker.engaged, frozenset())
        self.assertEqual(self.router.pressed, set())
        self.assertEqual(self.sampler.events[-1], ("stop", 1))

    def test_release_without_press_does_nothing(self) -> None:
        self.assertIsNone(self.router.key_released("a"))
        self.assertEqual(self.sampler.events, [])

    def test_follows_base_note(self) -> None:
        self.tracker.set_tuning(TuningConfig(base_index=48))
        self.assertEqual(self.router.key_pressed("a"), 48)
        self.assertEqual(self.sampler.events[0][1], 1.0)
        self.assertEqual(self.router.note_at(20, 300), 48)


if __name__ == "__main__":
    unittest.main()
