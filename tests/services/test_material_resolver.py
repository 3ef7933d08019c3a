from __future__ import annotations

from dataclasses import replace
from uuid import uuid4

from lms.models.week import LegacyMaterial, Week
from lms.repos.bundle import Repositories
from lms.services.material_resolver import (
    find_material,
    merge_materials,
    resolve_materials,
)
from tests.conftest import SCOPE, run, seed_content, seed_week


def _resolve(repos: Repositories, week_id):
    return run(resolve_materials(week_id, weeks=repos.weeks, contents=repos.contents))


def test_normalized_contents_come_first_in_order(repos: Repositories) -> None:
    legacy = LegacyMaterial.new(type="pdf", title="Old handout")
    week = seed_week(repos, 1, legacy=(legacy,))
    second = seed_content(repos, week, "summary", "Recap", order=2)
    first = seed_content(repos, week, "notes", "Intro", order=1)

    materials = _resolve(repos, week.id)

    assert [m.id for m in materials] == [
        str(first.id),
        str(second.id),
        f"legacy-{legacy.id}",
    ]
    assert materials[0].source == "content"
    assert materials[2].source == "legacy"
    assert materials[2].original_material_id == str(legacy.id)


def test_legacy_duplicate_of_normalized_entry_is_dropped(repos: Repositories) -> None:
    legacy = LegacyMaterial.new(
        type="notes", title="  Chapter 1 ", file_name="CH1.pdf"
    )
    week = seed_week(repos, 1, legacy=(legacy,))
    seed_content(repos, week, "notes", "chapter 1", file_name="ch1.pdf")

    materials = _resolve(repos, week.id)

    assert len(materials) == 1
    assert materials[0].source == "content"


def test_legacy_entry_with_different_type_is_kept(repos: Repositories) -> None:
    legacy = LegacyMaterial.new(type="pdf", title="Chapter 1")
    week = seed_week(repos, 1, legacy=(legacy,))
    seed_content(repos, week, "notes", "Chapter 1")

    assert len(_resolve(repos, week.id)) == 2


def test_identical_legacy_entries_are_not_deduplicated_against_each_other(
    repos: Repositories,
) -> None:
    a = LegacyMaterial.new(type="notes", title="Same")
    b = LegacyMaterial.new(type="notes", title="Same")
    week = seed_week(repos, 1, legacy=(a, b))

    assert len(_resolve(repos, week.id)) == 2


def test_inactive_contents_are_excluded(repos: Repositories) -> None:
    week = seed_week(repos, 1)
    content = seed_content(repos, week, "notes", "Hidden")
    hidden = replace(content, is_active=False)
    repos.contents._by_id[content.id] = hidden  # type: ignore[attr-defined]

    assert _resolve(repos, week.id) == []


def test_missing_week_resolves_to_empty_list(repos: Repositories) -> None:
    assert _resolve(repos, uuid4()) == []


def test_merge_is_pure_and_keeps_legacy_positions() -> None:
    a = LegacyMaterial.new(type="notes", title="A")
    b = LegacyMaterial.new(type="summary", title="B")
    week = Week.new(week_number=3, title="Week 3", scope=SCOPE, materials=(a, b))

    materials = merge_materials(week, [])

    assert [m.order for m in materials] == [0, 1]
    assert all(m.week_id == week.id for m in materials)


def test_find_material_matches_prefixed_and_original_ids(repos: Repositories) -> None:
    legacy = LegacyMaterial.new(type="notes", title="Legacy notes")
    week = seed_week(repos, 1, legacy=(legacy,))
    materials = _resolve(repos, week.id)

    assert find_material(materials, f"legacy-{legacy.id}") is materials[0]
    assert find_material(materials, str(legacy.id)) is materials[0]
    assert find_material(materials, "nope") is None
