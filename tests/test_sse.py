"""Tests for byte decoding and line framing."""

from workflow_chat.utils.sse import ByteDecoder, LineFramer, StreamState, format_sse


STREAM = (
    'data: {"type":"chunk","content":"Olá, ","timestamp":"t1"}\n'
    'data: {"type":"chunk","content":"mundo 🌍","timestamp":"t2"}\n'
    "\n"
    'data: {"type":"done","full_response":"Olá, mundo 🌍","execution_time_ms":7}\n'
).encode("utf-8")


def test_decoder_holds_split_multibyte_character():
    decoder = ByteDecoder()
    encoded = "é".encode("utf-8")
    assert decoder.decode(b"caf" + encoded[:1]) == "caf"
    assert decoder.decode(encoded[1:] + b"!") == "é!"


def test_decoder_holds_split_four_byte_character():
    decoder = ByteDecoder()
    encoded = "🌍".encode("utf-8")
    assert decoder.decode(encoded[:1]) == ""
    assert decoder.decode(encoded[1:3]) == ""
    assert decoder.decode(encoded[3:]) == "🌍"


def test_decoder_flush_drops_truncated_bytes():
    decoder = ByteDecoder()
    assert decoder.decode(b"ok\xe2\x82") == "ok"
    assert decoder.flush() == ""


def test_decoder_marks_malformed_bytes():
    decoder = ByteDecoder()
    assert decoder.decode(b"a\xffb") == "a\ufffdb"
    assert decoder.flush() == ""


def test_decoder_replaces_mid_stream_but_drops_truncated_tail():
    decoder = ByteDecoder()
    assert decoder.decode(b"x\xc3(") == "x\ufffd("
    assert decoder.decode(b"y\xf0\x9f") == "y"
    assert decoder.flush() == ""


def test_framer_keeps_partial_frame():
    framer = LineFramer()
    assert framer.feed("data: one\ndata: tw") == ["data: one"]
    assert framer.remainder == "data: tw"
    assert framer.feed("o\n") == ["data: two"]
    assert framer.remainder == ""


def test_framer_without_delimiter_emits_nothing():
    framer = LineFramer()
    assert framer.feed("data: partial") == []
    assert framer.feed("") == []
    assert framer.remainder == "data: partial"


def test_framer_discards_empty_lines():
    framer = LineFramer()
    assert framer.feed("\n\ndata: a\n\n\ndata: b\n") == ["data: a", "data: b"]


def test_framer_strips_carriage_return():
    framer = LineFramer()
    assert framer.feed("data: a\r\ndata: b\r") == ["data: a"]
    assert framer.feed("\n") == ["data: b"]


def test_remainder_never_contains_delimiter():
    framer = LineFramer()
    for piece in ["da", "ta: x\nda", "ta", ": y\n\nz", "\n", "tail"]:
        framer.feed(piece)
        assert "\n" not in framer.remainder


def test_stream_state_split_at_any_offset_matches_single_read():
    expected = StreamState().feed(STREAM)
    assert len(expected) == 3

    for offset in range(len(STREAM) + 1):
        state = StreamState()
        frames = state.feed(STREAM[:offset]) + state.feed(STREAM[offset:]) + state.finish()
        assert frames == expected, f"split at byte {offset}"


def test_stream_state_byte_at_a_time():
    state = StreamState()
    frames = []
    for i in range(len(STREAM)):
        frames.extend(state.feed(STREAM[i:i + 1]))
    frames.extend(state.finish())
    assert frames == StreamState().feed(STREAM)
    assert state.bytes_received == len(STREAM)


def test_stream_state_finish_does_not_emit_unterminated_frame():
    state = StreamState()
    assert state.feed(b'data: {"type":"done"') == []
    assert state.finish() == []
    assert state.framer.remainder == 'data: {"type":"done"'


def test_format_sse():
    line = format_sse({"type": "chunk", "content": "hi", "timestamp": "t"})
    assert line == 'data: {"type":"chunk","content":"hi","timestamp":"t"}\n\n'
