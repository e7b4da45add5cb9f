import json

import pytest

from shared.envelope import (
    ChatMessage,
    DecodeError,
    MessageIntent,
    StoppedTyping,
    TypingIntent,
    TypingUpdate,
    UsernameChange,
    Welcome,
    decode,
    encode,
)


def test_decode_welcome():
    assert decode('{"type":"welcome","clientId":"c1"}') == Welcome(client_id="c1")


def test_decode_typing_with_and_without_client_id():
    event = decode(json.dumps({"type": "typing", "username": "bob", "text": "hi", "clientId": "c2"}))
    assert event == TypingUpdate(username="bob", text="hi", client_id="c2")

    event = decode(json.dumps({"type": "typing", "username": "bob", "text": "hi"}))
    assert event == TypingUpdate(username="bob", text="hi", client_id=None)


def test_decode_message_and_stop_typing():
    event = decode(json.dumps({"type": "message", "username": "bob", "text": "hello all", "timestamp": 1000}))
    assert event == ChatMessage(username="bob", text="hello all", timestamp=1000)

    assert decode(b'{"type":"user_stopped_typing","username":"bob"}') == StoppedTyping(username="bob")


def test_decode_ignores_extra_fields():
    event = decode(json.dumps({"type": "welcome", "clientId": "c1", "motd": "hi"}))
    assert event == Welcome(client_id="c1")


@pytest.mark.parametrize("frame", [
    '{"type":"presence","users":[]}',
    '{"type":"username_change","username":"bob"}',
])
def test_unknown_or_outbound_only_types_are_ignored(frame):
    assert decode(frame) is None


@pytest.mark.parametrize("frame", [
    "not json",
    "[1, 2, 3]",
    '{"username":"bob"}',
    '{"type": 5}',
    '{"type":"welcome"}',
    '{"type":"typing","username":"bob"}',
    '{"type":"typing","username":"bob","text":3}',
    '{"type":"typing","username":"bob","text":"x","clientId":7}',
    '{"type":"message","username":"bob","text":"x"}',
    '{"type":"message","username":"bob","text":"x","timestamp":"soon"}',
    '{"type":"message","username":"bob","text":"x","timestamp":true}',
    b'\xff\xfe',
])
def test_malformed_frames_raise_decode_error(frame):
    with pytest.raises(DecodeError):
        decode(frame)


def test_encode_outbound_intents():
    assert json.loads(encode(UsernameChange(username="alice"))) == {"type": "username_change", "username": "alice"}
    assert json.loads(encode(TypingIntent(username="alice", text="he", timestamp=5))) == {
        "type": "typing", "username": "alice", "text": "he", "timestamp": 5,
    }
    assert json.loads(encode(MessageIntent(username="alice", text="hello", timestamp=6))) == {
        "type": "message", "username": "alice", "text": "hello", "timestamp": 6,
    }


def test_encoded_frame_is_compact():
    assert encode(UsernameChange(username="a")) == '{"type":"username_change","username":"a"}'
