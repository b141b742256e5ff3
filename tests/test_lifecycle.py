"""Tests for check-in, check-out, action logs and the daily rollover."""

# pylint: disable=redefined-outer-name

import datetime
from concurrent.futures import ThreadPoolExecutor

import pytest

from daycare_desk.domain.services import LifecycleService
from daycare_desk.errors import NotFoundError, ValidationError

MIA = {"name": "Mia", "parent_phone": "+491234", "pickup_time": "15:30"}
LEO = {"name": "Leo", "parent_phone": "+495678", "parent_phone2": "+499999", "pickup_time": "16:00"}


def _action_for(child, **overrides):
    data = {
        "child_id": child.id,
        "child_name": child.name,
        "action_type": "emergency",
        "parent_phone": child.parent_phone,
        "message": "There's an emergency. Please contact the daycare immediately.",
    }
    data.update(overrides)
    return data


# ============================================
# CHECK-IN
# ============================================


def test_register_child_assigns_daily_id_and_active_status(lifecycle, clock):
    """A new child is active, stamped with now and numbered from 1."""
    child = lifecycle.register_child(MIA)

    assert child.daily_id == 1
    assert child.status == "active"
    assert child.registered_at == clock.now()
    assert child.parent_phone2 is None
    assert lifecycle.get_child(child.id) == child


def test_register_child_normalizes_input(lifecycle):
    """Whitespace is stripped, blank secondary phones dropped and seconds removed."""
    child = lifecycle.register_child(
        {"name": "  Ada ", "parent_phone": " +4911 ", "parent_phone2": "  ", "pickup_time": "09:05:00"}
    )

    assert child.name == "Ada"
    assert child.parent_phone == "+4911"
    assert child.parent_phone2 is None
    assert child.pickup_time == "09:05"


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"name": "   "},
        {"parent_phone": None},
        {"pickup_time": ""},
        {"pickup_time": "half past three"},
        {"pickup_time": "25:00"},
    ],
)
def test_register_child_rejects_bad_input(lifecycle, store, overrides):
    """Invalid registrations persist nothing and consume no daily ID."""
    with pytest.raises(ValidationError):
        lifecycle.register_child({**MIA, **overrides})

    assert store.list_children() == []
    assert lifecycle.register_child(MIA).daily_id == 1


def test_concurrent_registrations_get_contiguous_ids(lifecycle):
    """Registrations from several terminals at once get 1..N without duplicates."""
    with ThreadPoolExecutor(max_workers=4) as pool:
        children = list(pool.map(lambda i: lifecycle.register_child({**MIA, "name": f"Child {i}"}), range(12)))

    assert sorted(child.daily_id for child in children) == list(range(1, 13))
    assert len(lifecycle.list_children()) == 12


def test_list_children_newest_first(lifecycle, clock):
    first = lifecycle.register_child(MIA)
    clock.advance(minutes=5)
    second = lifecycle.register_child(LEO)

    assert [child.id for child in lifecycle.list_children()] == [second.id, first.id]


def test_get_child_unknown_id(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.get_child("does-not-exist")


# ============================================
# CHECK-OUT
# ============================================


def test_check_out_moves_child_to_archive(lifecycle):
    """After checkout the child is only visible in the picked_up view."""
    mia = lifecycle.register_child(MIA)
    leo = lifecycle.register_child(LEO)

    lifecycle.check_out(mia.id)

    assert [child.id for child in lifecycle.list_children("active")] == [leo.id]
    assert [child.id for child in lifecycle.list_children("picked_up")] == [mia.id]
    assert lifecycle.get_child(mia.id).status == "picked_up"


def test_check_out_is_idempotent(lifecycle):
    """Checking out twice succeeds and leaves the child picked up."""
    child = lifecycle.register_child(MIA)

    lifecycle.check_out(child.id)
    again = lifecycle.check_out(child.id)

    assert again.status == "picked_up"
    assert lifecycle.get_child(child.id).status == "picked_up"


def test_check_out_unknown_child(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.check_out("does-not-exist")


def test_list_children_rejects_unknown_status(lifecycle):
    with pytest.raises(ValidationError):
        lifecycle.list_children("deleted")


# ============================================
# ACTION LOGS
# ============================================


def test_log_action_persists_and_notifies(lifecycle, notifier):
    child = lifecycle.register_child(MIA)

    log = lifecycle.log_action(_action_for(child))

    assert log.child_id == child.id
    assert log.child_name == "Mia"
    assert lifecycle.list_actions() == [log]
    assert notifier.calls == [(child.parent_phone, log.message, "Mia")]


def test_log_action_survives_notification_failure(lifecycle, notifier):
    """A failing webhook neither loses nor duplicates the log."""
    child = lifecycle.register_child(MIA)
    notifier.fail = True

    log = lifecycle.log_action(_action_for(child))

    assert lifecycle.list_actions() == [log]
    assert len(notifier.calls) == 1


def test_log_action_requires_all_fields(lifecycle, notifier):
    child = lifecycle.register_child(MIA)

    with pytest.raises(ValidationError):
        lifecycle.log_action(_action_for(child, message=""))

    assert lifecycle.list_actions() == []
    assert notifier.calls == []


def test_list_actions_newest_first(lifecycle, clock):
    child = lifecycle.register_child(MIA)
    first = lifecycle.log_action(_action_for(child))
    clock.advance(minutes=1)
    second = lifecycle.log_action(_action_for(child, action_type="pickup_time", message="Time to go"))

    assert [log.id for log in lifecycle.list_actions()] == [second.id, first.id]


def test_notify_parent_uses_template(lifecycle, notifier):
    """Without a message the seeded template for the action type is sent."""
    child = lifecycle.register_child(LEO)

    log = lifecycle.notify_parent(child.id, "child_wishes")

    assert log.message == "Your child wishes to be picked up."
    assert log.parent_phone == "+495678"
    assert notifier.calls == [("+495678", "Your child wishes to be picked up.", "Leo")]


def test_notify_parent_custom_message_and_unknown_template(lifecycle):
    child = lifecycle.register_child(MIA)

    assert lifecycle.notify_parent(child.id, "nap_over", "Mia woke up").message == "Mia woke up"
    with pytest.raises(ValidationError):
        lifecycle.notify_parent(child.id, "nap_over")
    with pytest.raises(NotFoundError):
        lifecycle.notify_parent("does-not-exist", "emergency")


def test_send_notification_does_not_log(lifecycle, notifier):
    lifecycle.send_notification("+4900", "Hello", None)

    assert notifier.calls == [("+4900", "Hello", "Unknown")]
    assert lifecycle.list_actions() == []
    with pytest.raises(ValidationError):
        lifecycle.send_notification("", "Hello")


# ============================================
# SUMMARY, SETTINGS AND ROLLOVER
# ============================================


def test_summary_counts_and_upcoming_pickups(lifecycle, clock):
    """Only active children due within the next 30 minutes are upcoming."""
    clock.advance(hours=7)  # 15:00
    soon = lifecycle.register_child({**MIA, "pickup_time": "15:20"})
    lifecycle.register_child({**LEO, "pickup_time": "17:00"})
    gone = lifecycle.register_child({**MIA, "name": "Ben", "pickup_time": "15:10"})
    lifecycle.check_out(gone.id)

    summary = lifecycle.summary()

    assert summary["date"] == "2024-03-04"
    assert summary["active_count"] == 2
    assert summary["picked_up_count"] == 1
    assert [child.id for child in summary["upcoming_pickups"]] == [soon.id]


def test_update_setting_upserts(lifecycle):
    lifecycle.update_setting("webhook_url", "https://hooks.example.test/desk")
    settings = lifecycle.update_setting("webhook_url", "https://hooks.example.test/other")

    assert settings["webhook_url"] == "https://hooks.example.test/other"
    assert settings["template_emergency"].startswith("There's an emergency")
    with pytest.raises(ValidationError):
        lifecycle.update_setting("last_reset_date", "2000-01-01")


def test_rollover_restarts_daily_ids_and_daily_view(lifecycle, store, clock):
    """A new day starts at #1 and hides yesterday's children from the daily view."""
    monday = lifecycle.register_child(MIA)
    lifecycle.register_child(LEO)

    clock.advance(days=1)
    assert lifecycle.reconcile_day() is True
    assert lifecycle.reconcile_day() is False

    tuesday = lifecycle.register_child(MIA)
    assert tuesday.daily_id == 1
    assert [child.id for child in lifecycle.list_children()] == [tuesday.id]

    history_ids = [child.id for child in lifecycle.list_history()]
    if store.durable:
        assert monday.id in history_ids
        assert [child.id for child in lifecycle.list_history(monday.registered_on)][-1] == monday.id
    else:
        assert history_ids == [tuesday.id]


@pytest.mark.parametrize("timezone", ["America/New_York", "Asia/Tokyo"])
def test_rollover_follows_local_midnight(store, broadcaster, notifier, zoned_clock, timezone):
    """The day turns over at midnight in the configured zone, behind or ahead of UTC."""
    clock = zoned_clock(timezone, datetime.datetime(2024, 3, 4, 23, 30))
    lifecycle = LifecycleService(store, clock, broadcaster, notifier)
    lifecycle.reconcile_day()

    evening = lifecycle.register_child(MIA)
    evening_log = lifecycle.notify_parent(evening.id, "emergency")
    assert evening.registered_on == datetime.date(2024, 3, 4)

    clock.advance(minutes=20)  # 23:50 local
    assert lifecycle.reconcile_day() is False
    assert lifecycle.register_child(LEO).daily_id == 2

    clock.advance(hours=1)  # 00:50 local on the 5th
    assert lifecycle.reconcile_day() is True

    morning = lifecycle.register_child(LEO)
    assert morning.daily_id == 1
    assert morning.registered_on == datetime.date(2024, 3, 5)
    assert [child.id for child in lifecycle.list_children()] == [morning.id]
    if store.durable:
        assert [log.id for log in lifecycle.list_actions()] == [evening_log.id]
    else:
        assert lifecycle.list_actions() == []
        assert [child.id for child in lifecycle.list_history()] == [morning.id]


def test_end_to_end_front_desk_day(lifecycle, notifier, clock):
    """Register two children, pick up the first, send an emergency about the second."""
    mia = lifecycle.register_child(MIA)
    assert (mia.daily_id, mia.status) == (1, "active")

    clock.advance(minutes=3)
    second = lifecycle.register_child(LEO)
    assert second.daily_id == 2

    lifecycle.check_out(mia.id)
    assert [child.id for child in lifecycle.list_children("active")] == [second.id]

    log = lifecycle.log_action(_action_for(second, message="Please call us"))
    assert log.child_id == second.id
    assert log.message == "Please call us"
    assert notifier.calls == [(second.parent_phone, "Please call us", "Leo")]
