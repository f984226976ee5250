import contextlib
import io
import unittest

from microsampler.audio.playback import MAX_BEND, ratio_to_key_and_bend


class RatioToKeyAndBendTests(unittest.TestCase):
    def test_exact_semitones(self) -> None:
        self.assertEqual(ratio_to_key_and_bend(1.0, 60, 2), (60, 0))
        self.assertEqual(ratio_to_key_and_bend(2.0, 60, 2), (72, 0))
        self.assertEqual(ratio_to_key_and_bend(0.5, 60, 2), (48, 0))

    def test_remainder_becomes_bend(self) -> None:
        key, bend = ratio_to_key_and_bend(2 ** (0.25 / 12), 60, 2)
        self.assertEqual(key, 60)
        self.assertEqual(bend, 1024)
        key, bend = ratio_to_key_and_bend(1.5, 60, 2)
        self.assertEqual(key, 67)
        self.assertAlmostEqual(bend, 80, delta=1)

    def test_downward_bend(self) -> None:
        key, bend = ratio_to_key_and_bend(2 ** (-0.25 / 12), 60, 2)
        self.assertEqual(key, 60)
        self.assertEqual(bend, -1024)

    def test_root_note_shifts_key(self) -> None:
        self.assertEqual(ratio_to_key_and_bend(1.0, 69, 2), (69, 0))

    def test_out_of_range_is_clamped(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            key, bend = ratio_to_key_and_bend(2.0 ** 20, 60, 2)
            low_key, low_bend = ratio_to_key_and_bend(2.0 ** -20, 60, 2)
        self.assertEqual(key, 127)
        self.assertEqual(bend, MAX_BEND)
        self.assertEqual(low_key, 0)
        self.assertEqual(low_bend, -(MAX_BEND + 1))


if __name__ == "__main__":
    unittest.main()
