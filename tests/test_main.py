import contextlib
import io
import tempfile
import unittest
from pathlib import Path

from microsampler import __version__
from microsampler.main import cli


def _run(argv):
    out = io.StringIO()
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(io.StringIO()):
        code = cli(argv)
    return code, out.getvalue()


class CliTests(unittest.TestCase):
    def test_version(self) -> None:
        code, out = _run(["--version"])
        self.assertEqual(code, 0)
        self.assertIn(f"microsampler {__version__}", out)

    def test_show_default_scale(self) -> None:
        code, out = _run(["show"])
        self.assertEqual(code, 0)
        self.assertIn("Scale status: No scale loaded. Using 12-TET", out)
        self.assertIn("2.0000", out)

    def test_show_scale_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "fifth.scl"
            path.write_text("! fifth.scl\nJust fifth\n1\n3/2\n", encoding="utf-8")
            code, out = _run(["--scl", str(path), "--base-note", "A4", "show"])
        self.assertEqual(code, 0)
        self.assertIn("Loaded scale: Just fifth", out)
        self.assertIn("Scale status: Loaded with 3 notes (Just fifth)", out)
        self.assertIn("  69", out)

    def test_show_bad_scale_file_falls_back(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.scl"
            path.write_text("nothing useful\n", encoding="utf-8")
            code, out = _run(["--scl", str(path), "show"])
        self.assertEqual(code, 0)
        self.assertIn("Using 12-TET", out)


if __name__ == "__main__":
    unittest.main()
