"""Tests for the tag taxonomy store."""

import pytest

from tradelog.core.enums import TagKind
from tradelog.journal.taxonomy import DEFAULT_TAXONOMY, TagTaxonomy, merge_vocabulary


class TestDefaults:
    def test_defaults_loaded(self):
        tax = TagTaxonomy()
        for kind in TagKind:
            assert tax.values(kind) == list(DEFAULT_TAXONOMY[kind])

    def test_explicit_empty(self):
        tax = TagTaxonomy({})
        assert all(tax.values(k) == [] for k in TagKind)

    def test_init_deduplicates_and_trims(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["A", " A ", "", "B"]})
        assert tax.values(TagKind.REGIONS) == ["A", "B"]


class TestMutations:
    def test_add_keeps_sorted(self):
        tax = TagTaxonomy({TagKind.TRIGGERS: ["B", "D"]})
        assert tax.add(TagKind.TRIGGERS, "C") is True
        assert tax.values(TagKind.TRIGGERS) == ["B", "C", "D"]

    def test_add_duplicate_or_blank_is_noop(self):
        tax = TagTaxonomy({TagKind.TRIGGERS: ["B"]})
        assert tax.add(TagKind.TRIGGERS, " B ") is False
        assert tax.add(TagKind.TRIGGERS, "  ") is False
        assert tax.values(TagKind.TRIGGERS) == ["B"]

    def test_membership_is_case_sensitive(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["Topo"]})
        assert tax.contains(TagKind.REGIONS, " Topo ")
        assert not tax.contains(TagKind.REGIONS, "topo")

    def test_remove(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["A", "B"]})
        assert tax.remove(TagKind.REGIONS, "A") is True
        assert tax.remove(TagKind.REGIONS, "A") is False
        assert tax.values(TagKind.REGIONS) == ["B"]

    def test_values_is_a_copy(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["A"]})
        tax.values(TagKind.REGIONS).append("X")
        assert tax.values(TagKind.REGIONS) == ["A"]


class TestMerge:
    def test_merge_vocabulary(self):
        assert merge_vocabulary(["A", "B"], ["B", "C"]) == ["A", "B", "C"]
        assert merge_vocabulary(["B", "C"], ["A", "B"]) == ["A", "B", "C"]

    def test_merge_reports_change(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["A", "B"]})
        assert tax.merge(TagKind.REGIONS, ["C"]) is True
        assert tax.values(TagKind.REGIONS) == ["A", "B", "C"]

    def test_merge_subset_is_noop(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["A", "B"]})
        assert tax.merge(TagKind.REGIONS, ["B"]) is False

    def test_merge_reorders_unsorted_local(self):
        tax = TagTaxonomy({TagKind.REGIONS: ["B", "A"]})
        assert tax.merge(TagKind.REGIONS, []) is True
        assert tax.values(TagKind.REGIONS) == ["A", "B"]


class TestBlob:
    def test_round_trip(self):
        tax = TagTaxonomy()
        tax.add(TagKind.STRUCTURES, "Bandeira")
        assert TagTaxonomy.from_dict(tax.to_dict()) == tax

    def test_blob_keys(self):
        assert set(TagTaxonomy().to_dict()) == {"regions", "structures", "triggers"}

    @pytest.mark.parametrize("blob", [[], {"regions": "A"}, {"triggers": [1, 2]}])
    def test_malformed_blob(self, blob):
        with pytest.raises(TypeError):
            TagTaxonomy.from_dict(blob)
