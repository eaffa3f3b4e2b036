"""Development helpers for populating fake guests and topics."""

from __future__ import annotations

import random

from faker import Faker

from .board import add_topic, issue_guest, toggle_like, upsert_rsvp
from .storage import RecordStore

_rsvp_statuses = ["attending", "attending", "attending", "maybe", "declined"]
_topic_prompts = [
    "Should we bring a gift?",
    "Who can give a ride from the station?",
    "Dress code ideas",
    "Playlist requests",
    "Anyone allergic to nuts?",
    "Board games or karaoke after dinner?",
]


def seed_fake_data(
    store: RecordStore,
    *,
    guest_count: int = 8,
    topic_count: int = 4,
    seed: int | None = None,
) -> dict[str, int]:
    """Create guests with RSVPs, a few topics and random likes."""
    faker = Faker()
    rng = random.Random(seed)
    if seed is not None:
        faker.seed_instance(seed)

    guests: list[tuple[str, str]] = []
    for _ in range(guest_count):
        name = faker.name()
        guest_id = issue_guest(store, name)
        guests.append((guest_id, name))
        if rng.random() < 0.8:
            upsert_rsvp(
                store,
                guest_id,
                name,
                rng.choice(_rsvp_statuses),
                plus_one=rng.random() < 0.3,
                show_public=rng.random() < 0.7,
            )

    topic_ids: list[str] = []
    likes = 0
    if guests:
        for _ in range(topic_count):
            author_id, author_name = rng.choice(guests)
            text = rng.choice(_topic_prompts + [faker.sentence(nb_words=6)])
            topic_ids.append(add_topic(store, author_id, author_name, text))

        for topic_id in topic_ids:
            for guest_id, _ in rng.sample(guests, k=rng.randint(0, len(guests))):
                toggle_like(store, guest_id, topic_id, unlike=False)
                likes += 1

    return {"guests": len(guests), "topics": len(topic_ids), "likes": likes}
