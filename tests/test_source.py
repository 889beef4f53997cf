import io
from unittest.mock import MagicMock

import pytest

from rewindable.buffer import Buffer
from rewindable.element import EOS
from rewindable.installer import INPUT_KEY
from rewindable.pad import PadDirection
from rewindable.source import StreamSource


@pytest.fixture
def mock_pad():
    pad = MagicMock()
    pad.direction = PadDirection.SRC
    return pad


def test_stream_source_pushes_request(mock_pad):
    stream = io.BytesIO(b"body")
    source = StreamSource(stream=stream, environ={"REQUEST_METHOD": "POST"})
    source._pads = [mock_pad]

    source.process()

    mock_pad.push.assert_called_once()
    request = mock_pad.push.call_args[0][0]
    assert request[INPUT_KEY] is stream
    assert request["REQUEST_METHOD"] == "POST"
    mock_pad.send_event.assert_called_once_with(EOS, None)


def test_environ_is_copied(mock_pad):
    environ = {"PATH_INFO": "/"}
    source = StreamSource(data=b"x", environ=environ)
    source._pads = [mock_pad]
    source.process()
    assert INPUT_KEY not in environ


def test_data_source_uses_buffer(mock_pad):
    source = StreamSource(data=b"in memory", input_key="rack.input")
    source._pads = [mock_pad]

    source.process()

    request = mock_pad.push.call_args[0][0]
    assert isinstance(request["rack.input"], Buffer)
    assert request["rack.input"].read() == b"in memory"


def test_stream_is_left_open(mock_pad):
    stream = io.BytesIO(b"body")
    source = StreamSource(stream=stream)
    source._pads = [mock_pad]
    source.process()
    source.close()
    assert not stream.closed


@pytest.mark.parametrize("kwargs", [{}, {"stream": io.BytesIO(), "data": b"x"}])
def test_exactly_one_input(kwargs):
    with pytest.raises(ValueError, match="exactly one"):
        StreamSource(**kwargs)
