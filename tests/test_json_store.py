import json

import pytest

from dependents_crawler.application.deduplicator import IdentityDeduplicator, RecordDeduplicator
from dependents_crawler.domain.entities import Dependent
from dependents_crawler.domain.errors import StoreError
from dependents_crawler.infrastructure.json_store import JsonDependentStore, from_record, to_record

PAGE_1 = "https://github.com/ownerA/repoB/network/dependents"

ALICE = Dependent(owner="alice", repo="tool", stars=1234, forks=56)
BOB   = Dependent(owner="bob", repo="lib", stars=7, forks=0, previous_page_url=PAGE_1)


def test_wire_format_uses_camel_case_backward_link():
    assert to_record(BOB) == {
        "owner": "bob",
        "repo": "lib",
        "stars": 7,
        "forks": 0,
        "previousGithubDependentsPageUrl": PAGE_1,
    }
    assert from_record(to_record(BOB)) == BOB


def test_initialize_writes_an_empty_array(store, store_path):
    store_path.write_text('[{"junk": true}]', encoding="utf-8")

    store.initialize()

    assert json.loads(store_path.read_text(encoding="utf-8")) == []
    assert store.load() == []
    assert store.last() is None


def test_append_keeps_order_and_rewrites_whole_file(store, store_path):
    store.initialize()
    assert store.append_deduped([ALICE]) == [ALICE]
    assert store.append_deduped([BOB]) == [BOB]

    assert store.load() == [ALICE, BOB]
    assert store.last() == BOB
    assert len(json.loads(store_path.read_text(encoding="utf-8"))) == 2


def test_appending_same_batch_twice_is_a_no_op(store):
    store.initialize()
    store.append_deduped([ALICE, BOB])

    assert store.append_deduped([ALICE, BOB]) == []
    assert store.load() == [ALICE, BOB]


def test_same_repo_with_other_backward_link_is_kept(store):
    store.initialize()
    store.append_deduped([ALICE])

    relinked = ALICE.with_previous_page(PAGE_1)
    assert store.append_deduped([relinked]) == [relinked]
    assert store.load() == [ALICE, relinked]


def test_identity_dedup_drops_same_repo_with_other_link(store_path):
    store = JsonDependentStore(store_path, deduplicator=IdentityDeduplicator())
    store.initialize()
    store.append_deduped([ALICE])

    assert store.append_deduped([ALICE.with_previous_page(PAGE_1)]) == []
    assert store.load() == [ALICE]


def test_no_temp_files_left_behind(store, tmp_path):
    store.initialize()
    store.append_deduped([ALICE])
    assert [p.name for p in tmp_path.iterdir()] == ["dependents.json"]


def test_missing_file_is_a_store_error(store):
    with pytest.raises(StoreError) as exc:
        store.load()
    assert exc.value.reason == StoreError.CORRUPT_OR_MISSING


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        '{"owner": "alice"}',
        '[{"owner": "alice", "repo": "tool", "stars": 1, "forks": 2}]',
        '[{"owner": "alice", "repo": "tool", "stars": "1", "forks": 2, "previousGithubDependentsPageUrl": null}]',
        '[{"owner": "", "repo": "tool", "stars": 1, "forks": 2, "previousGithubDependentsPageUrl": null}]',
        '[{"owner": "alice", "repo": "tool", "stars": -1, "forks": 2, "previousGithubDependentsPageUrl": null}]',
        '[{"owner": "alice", "repo": "tool", "stars": true, "forks": 2, "previousGithubDependentsPageUrl": null}]',
        '[["alice", "tool", 1, 2, null]]',
    ],
)
def test_corrupt_content_is_a_store_error(store, store_path, content):
    store_path.write_text(content, encoding="utf-8")
    with pytest.raises(StoreError):
        store.load()


def test_append_against_corrupt_store_fails_without_writing(store, store_path):
    store_path.write_text("not json", encoding="utf-8")
    with pytest.raises(StoreError):
        store.append_deduped([ALICE])
    assert store_path.read_text(encoding="utf-8") == "not json"


def test_record_deduplicator_compares_every_field():
    dedup = RecordDeduplicator()
    more_stars = Dependent(owner="alice", repo="tool", stars=1235, forks=56)
    assert dedup.filter_fresh([ALICE], [ALICE, more_stars, BOB]) == [more_stars, BOB]


def test_identity_deduplicator_compares_owner_and_repo():
    dedup = IdentityDeduplicator()
    more_stars = Dependent(owner="alice", repo="tool", stars=1235, forks=56)
    assert dedup.filter_fresh([ALICE], [more_stars, BOB]) == [BOB]
