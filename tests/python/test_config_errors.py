import unittest
import warnings

import modelrt as mr
from modelrt._internal import config as config_module


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = mr.get_config()
        self.assertIsInstance(cfg, mr.RuntimeConfig)
        self.assertGreater(cfg.relative_tolerance, 0)
        self.assertIn(cfg.csv_complex_style, ("pair", "suffix"))

    def test_override_is_scoped(self):
        before = mr.get_config()
        with mr.config_override(relative_tolerance=0.5) as cfg:
            self.assertEqual(cfg.relative_tolerance, 0.5)
            self.assertIs(mr.get_config(), cfg)
        self.assertEqual(mr.get_config(), before)

    def test_override_restores_after_error(self):
        before = mr.get_config()
        with self.assertRaises(RuntimeError):
            with mr.config_override(edge_items=7):
                raise RuntimeError("boom")
        self.assertEqual(mr.get_config(), before)

    def test_validation(self):
        with self.assertRaises(mr.InvalidParameterValue):
            mr.configure(relative_tolerance=-1.0)
        with self.assertRaises(mr.InvalidParameterValue):
            mr.configure(csv_complex_style="polar")
        with self.assertRaises(mr.InvalidParameterValue):
            mr.configure(csv_delimiter=";;")
        with self.assertRaises(mr.InvalidParameterValue):
            mr.configure(no_such_key=1)

    def test_tolerance_feeds_predicates(self):
        m = mr.MatrixReal([[1.0, 2.0], [2.1, 1.0]])
        self.assertFalse(m.is_symmetric())
        with mr.config_override(relative_tolerance=0.1):
            self.assertTrue(m.is_symmetric())


def test_environment_seeds_configuration(monkeypatch):
    monkeypatch.setenv("MODELRT_RELATIVE_TOLERANCE", "0.25")
    monkeypatch.setenv("MODELRT_CSV_COMPLEX_STYLE", "Suffix")
    monkeypatch.setattr(config_module, "_active", None)
    cfg = mr.get_config()
    assert cfg.relative_tolerance == 0.25
    assert cfg.csv_complex_style == "suffix"
    monkeypatch.setattr(config_module, "_active", None)


def test_bad_environment_value(monkeypatch):
    monkeypatch.setenv("MODELRT_RELATIVE_TOLERANCE", "tight")
    monkeypatch.setattr(config_module, "_active", None)
    try:
        mr.get_config()
    except mr.InvalidParameterValue:
        pass
    else:
        raise AssertionError("expected InvalidParameterValue")
    monkeypatch.delenv("MODELRT_RELATIVE_TOLERANCE")
    monkeypatch.setattr(config_module, "_active", None)


class TestErrors(unittest.TestCase):
    def test_hierarchy(self):
        self.assertTrue(issubclass(mr.InvalidRow, IndexError))
        self.assertTrue(issubclass(mr.InvalidMatrixDimensions, ValueError))
        self.assertTrue(issubclass(mr.InvalidRuntimeConversion, TypeError))
        self.assertTrue(issubclass(mr.FileReadError, OSError))
        self.assertTrue(issubclass(mr.InvalidFileNumber, mr.FileError))
        for cls in (mr.InvalidRow, mr.FileError, mr.MalformedString, mr.InvalidContainerContents):
            self.assertTrue(issubclass(cls, mr.ModelRtError))

    def test_codes_have_messages(self):
        self.assertEqual(mr.error_message(mr.InvalidColumn.code), "Invalid column")
        self.assertEqual(mr.error_message(mr.FileSeekError.code), "File seek error")
        self.assertEqual(mr.error_message(0), "Success")
        self.assertEqual(mr.error_message(9999), "Unknown error")

    def test_default_message_uses_code(self):
        self.assertEqual(str(mr.InvalidNumericValue()), "Invalid numeric value")

    def test_file_error_carries_errno_and_path(self):
        err = mr.FileOpenError("/tmp/x", 2)
        self.assertEqual(err.errno, 2)
        self.assertEqual(err.filename, "/tmp/x")
        self.assertIn("errno 2", str(err))

    def test_conversion_error_names_kinds(self):
        err = mr.InvalidRuntimeConversion(mr.ValueKind.SET, mr.ValueKind.INTEGER)
        self.assertIn("SET", str(err))
        self.assertIn("INTEGER", str(err))


class TestWarnings(unittest.TestCase):
    def test_categories(self):
        for cls in (mr.ModelRtDTypeWarning, mr.ModelRtPerformanceWarning, mr.ModelRtNumericWarning):
            self.assertTrue(issubclass(cls, mr.ModelRtWarning))
        self.assertTrue(issubclass(mr.ModelRtWarning, UserWarning))

    def test_warnings_can_be_filtered_by_category(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("ignore")
            warnings.simplefilter("always", mr.ModelRtPerformanceWarning)
            mr.MatrixReal.identity(2).to_sparse().determinant()
        self.assertEqual(len(caught), 1)
        self.assertIs(caught[0].category, mr.ModelRtPerformanceWarning)
