"""Property test: taxonomy vocabulary merging.

Merging is a set union kept in sorted order, so it must be commutative,
idempotent, and never lose a value from either side.
"""

from hypothesis import given, strategies as st

from tradelog.core.enums import TagKind
from tradelog.journal.taxonomy import TagTaxonomy, merge_vocabulary

tag = st.text(min_size=1, max_size=12).map(str.strip).filter(bool)
vocab = st.lists(tag, max_size=15)


@given(a=vocab, b=vocab)
def test_merge_is_commutative(a, b):
    assert merge_vocabulary(a, b) == merge_vocabulary(b, a)


@given(a=vocab, b=vocab)
def test_merge_keeps_every_value_once(a, b):
    merged = merge_vocabulary(a, b)
    assert set(merged) == set(a) | set(b)
    assert len(merged) == len(set(merged))
    assert merged == sorted(merged)


@given(local=vocab, remote=vocab)
def test_second_merge_changes_nothing(local, remote):
    taxonomy = TagTaxonomy({TagKind.TRIGGERS: local})
    taxonomy.merge(TagKind.TRIGGERS, remote)
    snapshot = taxonomy.values(TagKind.TRIGGERS)

    assert taxonomy.merge(TagKind.TRIGGERS, remote) is False
    assert taxonomy.values(TagKind.TRIGGERS) == snapshot
    assert taxonomy.values(TagKind.REGIONS) == []
