"""
Tests for configuration, error types and logging.
"""

import logging
import math

import pytest

import dokcsr
from dokcsr import (
    SparseMatrix,
    DisplayConfig,
    ValidationConfig,
    DokcsrConfig,
    SparseError,
    RowOutOfBoundsError,
    ColOutOfBoundsError,
    ShapeMismatchError,
    InvalidValueError,
    StaleCacheError,
    config,
    get_config,
)
from dokcsr.error import (
    DOKCSR_ERROR_INDEX_OUT_OF_BOUNDS,
    DOKCSR_ERROR_SHAPE_MISMATCH,
    DOKCSR_ERROR_STALE_CACHE,
    DOKCSR_ERROR_INVALID_VALUE,
)


class TestConfiguration:
    """Test the global configuration manager."""

    def test_global_instance(self):
        assert get_config() is config
        assert dokcsr.config is config

    def test_to_dict(self):
        assert config.to_dict() == {
            "display": {"width": 6, "precision": 2, "indent": "\t"},
            "validation": {"check_finite": True},
        }
        assert "DokcsrConfig" in repr(config)

    def test_local_restores_global(self):
        with config.local(validation=ValidationConfig(check_finite=False)):
            assert not config.check_finite
        assert config.check_finite

    def test_check_finite_inside_local(self):
        """Assigning check_finite in a local block changes the override only."""
        with config.local(validation=ValidationConfig()):
            config.check_finite = False
            assert not config.check_finite
            mat = SparseMatrix.empty_with_shape(1, 1)
            mat.insert(0, 0, float('inf'))
        assert config.check_finite

    def test_check_finite_replaces_global(self):
        """The caller's ValidationConfig is not modified in place."""
        seen = []
        manager = DokcsrConfig()
        mine = ValidationConfig(check_finite=True)
        manager.validation = mine
        manager.on_change("validation", seen.append)
        manager.check_finite = False
        assert mine.check_finite
        assert not manager.check_finite
        assert manager.validation is not mine
        assert len(seen) == 1
        assert seen[0].check_finite is False

    def test_local_unknown_section(self):
        with pytest.raises(TypeError):
            config.local(parallel=None)

    def test_reset(self):
        config.display = DisplayConfig(width=9)
        config.reset()
        assert config.display.width == 6

    def test_on_change_callback(self):
        seen = []
        manager = DokcsrConfig()
        manager.on_change("display", seen.append)
        new = DisplayConfig(precision=4)
        manager.display = new
        assert seen == [new]

    def test_failing_callback_is_logged(self, caplog):
        manager = DokcsrConfig()

        def broken(value):
            raise RuntimeError("boom")

        manager.on_change("validation", broken)
        with caplog.at_level(logging.ERROR, logger="dokcsr.config"):
            manager.validation = ValidationConfig()
        assert "validation" in caplog.text

    def test_on_change_unknown_section(self):
        with pytest.raises(KeyError):
            DokcsrConfig().on_change("memory", print)

    def test_env_allows_nonfinite(self, monkeypatch):
        monkeypatch.setenv("DOKCSR_ALLOW_NONFINITE", "1")
        assert not ValidationConfig.from_env().check_finite
        monkeypatch.delenv("DOKCSR_ALLOW_NONFINITE")
        assert ValidationConfig.from_env().check_finite

    def test_nonfinite_allowed_when_unchecked(self):
        mat = SparseMatrix.empty_with_shape(1, 2)
        config.check_finite = False
        mat.insert(0, 0, float('inf'))
        mat.insert_triplets([(0, 1, float('nan'))])
        assert mat.peek_at(0, 0) == math.inf
        assert math.isnan(mat.peek_at(0, 1))


class TestErrors:
    """Test the exception hierarchy."""

    def test_row_error(self):
        mat = SparseMatrix.empty_with_shape(3, 2)
        with pytest.raises(RowOutOfBoundsError) as info:
            mat.insert(3, 0, 1.0)
        err = info.value
        assert err.code == DOKCSR_ERROR_INDEX_OUT_OF_BOUNDS
        assert err.index == 3
        assert err.bound == 3
        assert "Row 3" in str(err)
        assert isinstance(err, SparseError)

    def test_col_error(self):
        mat = SparseMatrix.empty_with_shape(3, 2)
        with pytest.raises(ColOutOfBoundsError) as info:
            mat.peek_at(0, 2)
        assert "Column 2" in str(info.value)
        assert not isinstance(info.value, RowOutOfBoundsError)

    def test_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError) as info:
            SparseMatrix.empty_with_shape(3, 3) + SparseMatrix.empty_with_shape(2, 2)
        err = info.value
        assert err.code == DOKCSR_ERROR_SHAPE_MISMATCH
        assert err.left == (3, 3)
        assert err.right == (2, 2)
        assert "addition" in err.message

    def test_stale_and_invalid_codes(self):
        assert StaleCacheError().code == DOKCSR_ERROR_STALE_CACHE
        assert InvalidValueError().code == DOKCSR_ERROR_INVALID_VALUE
        assert StaleCacheError().message == "Compressed view is stale"

    def test_every_code_is_raised(self):
        """Each exported error code belongs to an exception class."""
        from dokcsr import error
        codes = {getattr(error, name) for name in error.__all__
                 if name.startswith("DOKCSR_ERROR_")}
        classes = {SparseError, RowOutOfBoundsError, ShapeMismatchError,
                   InvalidValueError, StaleCacheError}
        assert codes == {cls.code for cls in classes}

    def test_explicit_code(self):
        err = SparseError("custom", code=99)
        assert err.code == 99
        assert str(err) == "custom"
        assert SparseError().message == "Unknown error"


class TestLogging:
    """Debug logging on cache and bulk operations."""

    def test_rebuild_logged(self, wide_matrix, caplog):
        with caplog.at_level(logging.DEBUG, logger="dokcsr.matrix"):
            wide_matrix.rebuild_compressed()
        assert "Rebuilt compressed view" in caplog.text

    def test_transpose_logged(self, wide_matrix, caplog):
        with caplog.at_level(logging.DEBUG, logger="dokcsr.matrix"):
            wide_matrix.transpose_inplace()
        assert "Transposed in place" in caplog.text

    def test_stale_read_logged(self, wide_matrix, caplog):
        wide_matrix.rebuild_compressed()
        wide_matrix.insert(3, 0, 1.0)
        with caplog.at_level(logging.DEBUG, logger="dokcsr.matrix"):
            list(wide_matrix.row_iter())
        assert "stale" in caplog.text

    def test_silent_by_default(self, wide_matrix, capsys):
        wide_matrix.rebuild_compressed()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
