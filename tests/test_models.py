import pytest

from pixeltone.exceptions import DecodeFailure, NoImageLoaded, PixelToneError, UnknownOperation
from pixeltone.models.channel_weights import ChannelWeights, LUMINANCE_WEIGHTS, SEPIA_MATRIX
from pixeltone.models.operation import Operation


@pytest.mark.parametrize("value, expected", [
    ("grayscale", Operation.GRAYSCALE),
    ("Invert", Operation.INVERT),
    ("  SEPIA ", Operation.SEPIA),
    (Operation.SEPIA, Operation.SEPIA),
])
def test_operation_parse(value, expected):
    assert Operation.parse(value) is expected


@pytest.mark.parametrize("value", ["blur", "", None])
def test_operation_parse_rejects_unknown(value):
    with pytest.raises(UnknownOperation):
        Operation.parse(value)


def test_operation_labels_and_names():
    assert [op.label for op in Operation] == ["Grayscale", "Invert", "Sepia"]
    assert Operation.names() == ["grayscale", "invert", "sepia"]


def test_luminance_weights_as_integers():
    assert LUMINANCE_WEIGHTS.as_integers().tolist() == [21, 72, 7]


def test_sepia_matrix_as_integers():
    rows = [row.as_integers().tolist() for row in SEPIA_MATRIX.rows()]
    assert rows == [[393, 769, 189], [349, 686, 168], [272, 534, 131]]


def test_weights_must_be_exact_at_their_scale():
    with pytest.raises(ValueError):
        ChannelWeights(0.2125, 0.7154, 0.0721, scale=100).as_integers()


def test_error_hierarchy():
    err = DecodeFailure("missing.png", "file not found")
    assert isinstance(err, PixelToneError)
    assert isinstance(err, OSError)
    assert err.path.name == "missing.png"
    assert "missing.png" in str(err)
    assert str(NoImageLoaded()) == "No image selected"
    assert isinstance(UnknownOperation("x"), ValueError)
