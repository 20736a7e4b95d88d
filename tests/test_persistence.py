from __future__ import annotations

from datetime import datetime, timezone

from short_videos.models import ENRICHABLE_COLUMNS, DerivedValues, Enrichment
from short_videos.persistence import PersistenceWriter, build_update_payload
from tests.fakes import FakeStore, make_video

NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _full_derived() -> DerivedValues:
    return DerivedValues(
        video_url="https://ik.imagekit.io/x/short-videos/videos/instagram_ABC1.mp4",
        cover_url="https://ik.imagekit.io/x/short-videos/covers/instagram_ABC1.jpg",
        transcript="Three things every buyer should know.",
        enrichment=Enrichment(
            summary="Buyer tips reel.",
            hook_text="Three things every buyer should know",
            cta="DM me 'HOME'",
            trigger_ids=["t-1"],
            power_word_ids=["p-1", "p-2"],
            category_id="c-1",
        ),
    )


def test_payload_only_contains_null_columns():
    video = make_video(transcript="already here", cta="existing cta", category_id="c-9")
    payload = build_update_payload(video, _full_derived(), now=NOW)

    keys = set(payload) - {"updated_at"}
    null_columns = {col for col in ENRICHABLE_COLUMNS if getattr(video, col) is None}
    assert keys <= null_columns
    assert "transcript" not in payload
    assert "cta" not in payload
    assert "category_id" not in payload
    assert payload["video_url"].endswith("instagram_ABC1.mp4")
    assert payload["updated_at"] == NOW.isoformat()


def test_payload_skips_empty_enrichment_strings():
    derived = DerivedValues(enrichment=Enrichment(summary="", hook_text="Hook", cta=""))
    payload = build_update_payload(make_video(), derived, now=NOW)

    assert payload == {"updated_at": NOW.isoformat(), "hook_text": "Hook"}


def test_applying_payload_twice_is_idempotent():
    store = FakeStore([make_video()])
    writer = PersistenceWriter(store)
    video = store.videos["vid-1"]

    writer.write(video, _full_derived())
    first_state = dict(vars(video))

    writer.write(video, DerivedValues(video_url="https://other/url.mp4", transcript="different"))
    assert vars(video) == first_state

    # The second payload only carries updated_at because every column is now set.
    assert set(store.updates[-1][1]) == {"updated_at"}


def test_associations_are_replaced_not_accumulated():
    store = FakeStore([make_video()])
    writer = PersistenceWriter(store)
    video = store.videos["vid-1"]
    store.associations["trigger"]["vid-1"] = ["t-old-1", "t-old-2"]

    writer.write(video, DerivedValues(enrichment=Enrichment(trigger_ids=["t-1", "t-2"])))

    assert store.associations["trigger"]["vid-1"] == ["t-1", "t-2"]


def test_empty_match_list_leaves_associations_alone():
    store = FakeStore([make_video()])
    store.associations["power_word"]["vid-1"] = ["p-9"]
    writer = PersistenceWriter(store)

    writer.write(store.videos["vid-1"], DerivedValues(enrichment=Enrichment(summary="s", power_word_ids=[])))

    assert store.associations["power_word"]["vid-1"] == ["p-9"]


def test_dry_run_performs_no_writes(caplog):
    store = FakeStore([make_video()])
    writer = PersistenceWriter(store, dry_run=True)

    with caplog.at_level("INFO"):
        payload = writer.write(store.videos["vid-1"], _full_derived())

    assert store.mutation_count == 0
    assert store.videos["vid-1"].video_url is None
    assert "video_url" in payload
    assert "DRY RUN" in caplog.text
