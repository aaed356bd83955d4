"""Tests for the exception hierarchy."""

import pytest

from laminar.errors import (
    BuildError,
    ConfigurationError,
    IndexOutOfRangeError,
    LaminarError,
    UnknownVariableError,
)


@pytest.mark.unit
class TestErrors:

    @pytest.mark.parametrize("error", [
        ConfigurationError("bad"),
        BuildError("V1", "bad"),
        UnknownVariableError("x"),
        IndexOutOfRangeError(3, 2),
    ])
    def test_all_are_laminar_errors(self, error):
        assert isinstance(error, LaminarError)

    def test_build_error_names_layer(self):
        err = BuildError("V1", "shape [] has no units")
        assert err.layer_name == "V1"
        assert str(err) == "[V1] shape [] has no units"

    def test_unknown_variable_message(self):
        err = UnknownVariableError("DeepBurstz")
        assert isinstance(err, KeyError)
        assert str(err) == "unknown unit variable: 'DeepBurstz'"

    def test_index_message(self):
        err = IndexOutOfRangeError(12, 9)
        assert isinstance(err, IndexError)
        assert str(err) == "unit index: 12 out of range, N = 9"
        assert (err.index, err.n_units) == (12, 9)
