from __future__ import annotations

from hanjadict.adapters.sources import base_table_source, expanded_table_source
from hanjadict.domain.model import EvidenceMechanism, SourceTag


def test_base_table_loads_with_base_mechanism() -> None:
    batch = base_table_source().fetch()

    assert batch.rejected == ()
    assert len(batch.records) > 100
    hyeon = next(record for record in batch.records if record.character == "賢")
    assert hyeon.source == SourceTag.HANJA_DATA
    assert hyeon.element_candidate == "목"
    assert hyeon.mechanism is EvidenceMechanism.BASE
    assert hyeon.confidence == 0.9
    assert hyeon.readings == ("현",)


def test_expanded_table_carries_known_conflicts() -> None:
    batch = expanded_table_source().fetch()

    by_character = {record.character: record for record in batch.records}
    assert by_character["賢"].element_candidate == "金"
    assert by_character["星"].element_candidate == "金"
    assert by_character["賢"].mechanism is EvidenceMechanism.EXPANDED
    assert by_character["賢"].yin_yang_candidate == "양"


def test_source_names_are_source_tags() -> None:
    assert base_table_source().name == SourceTag.HANJA_DATA
    assert expanded_table_source().name == SourceTag.HANJA_EXPANDED
