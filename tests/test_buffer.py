import pytest

from sponge.buffer import Buffer, BufferList, BufferViewList

DATA = b"hello, world"


def test_buffer_round_trip():
    buf = Buffer(DATA)
    assert bytes(buf) == DATA
    assert len(buf) == len(DATA)
    assert buf.copy() == DATA


def test_buffer_at():
    buf = Buffer(DATA)
    assert buf.at(0) == DATA[0]
    assert buf.at(len(DATA) - 1) == DATA[-1]
    with pytest.raises(IndexError):
        buf.at(len(DATA))


def test_buffer_remove_prefix():
    buf = Buffer(DATA)
    buf.remove_prefix(3)
    assert bytes(buf) == DATA[3:]
    assert buf.at(0) == DATA[3]
    assert len(buf) == len(DATA) - 3


def test_buffer_remove_everything():
    buf = Buffer(DATA)
    buf.remove_prefix(len(DATA))
    assert len(buf) == 0
    assert bytes(buf) == b""
    buf.remove_prefix(0)
    with pytest.raises(IndexError):
        buf.remove_prefix(1)


def test_buffer_remove_too_much():
    buf = Buffer(DATA)
    with pytest.raises(IndexError):
        buf.remove_prefix(len(DATA) + 1)
    assert bytes(buf) == DATA


def test_buffer_rejects_text():
    with pytest.raises(TypeError):
        Buffer("text")


def test_buffer_list_holds_independent_copies():
    original = Buffer(DATA)
    blist = BufferList(original)
    blist.remove_prefix(4)
    assert bytes(original) == DATA
    assert blist.concatenate() == DATA[4:]


def test_buffer_list_concatenate_and_len():
    blist = BufferList(b"head")
    blist.append(BufferList(b"er"))
    blist.append(Buffer(DATA))
    assert blist.concatenate() == b"head" + b"er" + DATA
    assert len(blist) == len(b"head" + b"er" + DATA)
    assert [bytes(b) for b in blist.buffers()] == [b"head", b"er", DATA]


def test_buffer_list_remove_prefix_across_buffers():
    parts = [b"abc", b"de", b"fghij"]
    blist = BufferList()
    for part in parts:
        blist.append(part)
    whole = b"".join(parts)
    for n in (1, 3, 1):
        blist.remove_prefix(n)
        whole = whole[n:]
        assert blist.concatenate() == whole
    assert len(blist.buffers()) == 1


def test_buffer_list_remove_too_much():
    blist = BufferList(DATA)
    with pytest.raises(IndexError):
        blist.remove_prefix(len(DATA) + 1)


def test_buffer_list_to_buffer():
    assert len(BufferList().to_buffer()) == 0
    assert bytes(BufferList(DATA).to_buffer()) == DATA
    blist = BufferList(b"a")
    blist.append(b"b")
    with pytest.raises(RuntimeError, match="concatenate"):
        blist.to_buffer()


def test_buffer_list_buffers_are_copies():
    blist = BufferList(DATA)
    blist.buffers()[0].remove_prefix(2)
    assert blist.concatenate() == DATA


def test_view_list_from_buffer_list():
    blist = BufferList(b"one")
    blist.append(b"two")
    view = BufferViewList(blist)
    assert len(view) == len(blist)
    view.remove_prefix(4)
    assert b"".join(bytes(v) for v in view.as_iovecs()) == (b"one" + b"two")[4:]
    assert blist.concatenate() == b"one" + b"two"


def test_view_list_from_bytes():
    view = BufferViewList(DATA)
    view.remove_prefix(5)
    assert len(view) == len(DATA) - 5
    assert [bytes(v) for v in view.as_iovecs()] == [DATA[5:]]


def test_view_list_drops_exhausted_pieces():
    blist = BufferList(b"xy")
    blist.append(b"z")
    view = BufferViewList(blist)
    view.remove_prefix(2)
    assert [bytes(v) for v in view.as_iovecs()] == [b"z"]


def test_view_list_remove_too_much():
    view = BufferViewList(DATA)
    with pytest.raises(IndexError):
        view.remove_prefix(len(DATA) + 1)