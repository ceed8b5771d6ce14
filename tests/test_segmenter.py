"""Unit tests for fragment wrapping and batch packing."""

import pytest

from huaweicloud_translator.errors import OversizedFragmentError
from huaweicloud_translator.segmenter import (
    BatchBuilder,
    OversizePolicy,
    byte_length,
    wrap_fragment,
)
from huaweicloud_translator.structures import TextFragment


def _fragments(*texts):
    return [TextFragment(index=i, text=text) for i, text in enumerate(texts)]


def test_two_fragments_fit_in_one_batch():
    batches = BatchBuilder(2000).build(_fragments("Hello", "World\nAgain"))

    assert len(batches) == 1
    assert batches[0].text == "<p>Hello </p>\n<p>World<br>Again </p>\n"
    assert [f.text for f in batches[0].fragments] == ["Hello", "World\nAgain"]


def test_three_near_half_limit_fragments_make_two_batches():
    # Each wrapped fragment is 990 bytes: "<p>" + 981 chars + " </p>\n".
    texts = ["a" * 981, "b" * 981, "c" * 981]
    assert all(byte_length(wrap_fragment(t)) == 990 for t in texts)

    batches = BatchBuilder(2000).build(_fragments(*texts))

    assert len(batches) == 2
    assert [f.index for f in batches[0].fragments] == [0, 1]
    assert [f.index for f in batches[1].fragments] == [2]


def test_batches_respect_limit_and_keep_order():
    texts = [("word " * n).strip() for n in (1, 3, 7, 2, 9, 4, 1, 6, 5, 8)]
    limit = 80

    batches = BatchBuilder(limit).build(_fragments(*texts))

    assert all(batch.fragments for batch in batches)
    assert all(batch.byte_length <= limit for batch in batches)
    flattened = [f.index for batch in batches for f in batch.fragments]
    assert flattened == list(range(len(texts)))
    assert [batch.batch_id for batch in batches] == list(range(1, len(batches) + 1))


def test_limit_is_measured_in_bytes():
    # "你好" is 6 bytes in UTF-8; each wrapped fragment is 15 bytes.
    batches = BatchBuilder(29).build(_fragments("你好", "你好"))

    assert len(batches) == 2


def test_content_is_escaped_and_stripped():
    batches = BatchBuilder().build([TextFragment(index=0, text="  a < b & c\n")])

    assert batches[0].text == "<p>a &lt; b &amp; c </p>\n"


def test_oversized_fragment_is_sent_alone_by_default(caplog):
    texts = ["short", "x" * 100, "tail"]

    batches = BatchBuilder(50).build(_fragments(*texts))

    assert [[f.index for f in b.fragments] for b in batches] == [[0], [1], [2]]
    assert batches[1].byte_length > 50
    assert "sending it in a batch of its own" in caplog.text


def test_oversized_fragment_can_be_rejected():
    builder = BatchBuilder(50, OversizePolicy.REJECT)

    with pytest.raises(OversizedFragmentError) as excinfo:
        builder.build(_fragments("short", "x" * 100))

    assert excinfo.value.index == 1
    assert excinfo.value.limit == 50


def test_no_fragments_means_no_batches():
    assert BatchBuilder().build([]) == []


MIXED_TEXTS = [
    "  padded  ",
    "你好，世界",
    "emoji 🎉👍🏽",
    "a < b & c > d",
    "&amp; &lt;p&gt;",
    "<p>literal</p> <br>",
    "one\ntwo\n\nthree",
    "tab\tand\xa0nbsp",
    "Ünïcödé ÆØÅ",
]


@pytest.mark.parametrize("limit", [30, 45, 64, 120, 2000])
def test_mixed_fragments_respect_byte_limit(limit):
    texts = MIXED_TEXTS * 3

    batches = BatchBuilder(limit).build(_fragments(*texts))

    flattened = [f.index for batch in batches for f in batch.fragments]
    assert flattened == list(range(len(texts)))
    for batch in batches:
        assert batch.text == "".join(wrap_fragment(f.content) for f in batch.fragments)
        assert len(batch.fragments) == 1 or batch.byte_length <= limit
