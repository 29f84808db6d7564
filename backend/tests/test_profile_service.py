"""Profile store logic tests"""
from datetime import timedelta

import pytest

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from app.models.profile import Profile, ProfileListItem, ProfileWatchHistoryEntry, get_default_avatars
from app.services import profile_service
from app.services.profile_service import (
    create_profile, update_profile, delete_profile, switch_active_profile,
    add_to_watch_history, get_watch_history, clear_watch_history, get_continue_watching,
    add_to_my_list, remove_from_my_list, get_my_list, is_in_my_list,
    get_active_profile, get_profile_limits, list_profiles, count_profiles
)


def active_profiles(db_session, user_id):
    return db_session.query(Profile).filter(Profile.user_id == user_id, Profile.is_active.is_(True)).all()


def movie(content_id="m1", progress=0, duration=0, **extra):
    return {"contentId": content_id, "contentType": "movie", "title": f"Movie {content_id}",
            "progress": progress, "duration": duration, **extra}


@pytest.mark.critical
class TestProfileCapacity:
    """Creating profiles against the account ceiling"""

    def test_first_profile_becomes_active(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", db=db_session)

        assert profile.is_active is True
        db_session.refresh(test_user)
        assert test_user.active_profile_id == profile.id

    def test_later_profiles_are_inactive(self, test_user, db_session):
        first = create_profile(test_user.id, "Alice", db=db_session)
        second = create_profile(test_user.id, "Bob", db=db_session)

        assert second.is_active is False
        assert [p.id for p in active_profiles(db_session, test_user.id)] == [first.id]

    def test_create_at_ceiling_is_forbidden(self, test_user, db_session):
        test_user.subscription_plan = "basic"
        db_session.commit()
        create_profile(test_user.id, "Alice", db=db_session)
        create_profile(test_user.id, "Bob", db=db_session)

        with pytest.raises(ForbiddenError) as exc_info:
            create_profile(test_user.id, "Carol", db=db_session)

        assert exc_info.value.extra == {"currentCount": 2, "maxAllowed": 2}
        assert count_profiles(test_user.id, db_session) == 2

    def test_account_override_beats_plan(self, test_user, db_session):
        test_user.subscription_plan = "premium"
        test_user.max_profiles = 1
        db_session.commit()
        create_profile(test_user.id, "Alice", db=db_session)

        with pytest.raises(ForbiddenError):
            create_profile(test_user.id, "Bob", db=db_session)

    def test_limits_report(self, test_user, db_session):
        create_profile(test_user.id, "Alice", db=db_session)

        limits = get_profile_limits(test_user, db_session)

        assert limits == {"currentCount": 1, "maxAllowed": 4, "canCreate": True, "remaining": 3}

    def test_duplicate_name_conflicts_within_account(self, test_user, db_session):
        create_profile(test_user.id, "Alice", db=db_session)

        with pytest.raises(ConflictError):
            create_profile(test_user.id, "  Alice ", db=db_session)
        assert count_profiles(test_user.id, db_session) == 1

    def test_other_account_may_reuse_name(self, test_user, test_user_2, db_session):
        create_profile(test_user.id, "Alice", db=db_session)
        profile = create_profile(test_user_2.id, "Alice", db=db_session)

        assert profile.name == "Alice"
        assert profile.is_active is True

    def test_duplicate_name_checked_before_capacity(self, test_user, db_session):
        test_user.max_profiles = 1
        db_session.commit()
        create_profile(test_user.id, "Alice", db=db_session)

        with pytest.raises(ConflictError):
            create_profile(test_user.id, "Alice", db=db_session)


@pytest.mark.high
class TestProfileValidation:

    @pytest.mark.parametrize("name", ["", "   ", None, 123, "x" * 51])
    def test_bad_names_rejected(self, test_user, db_session, name):
        with pytest.raises(ValidationError):
            create_profile(test_user.id, name, db=db_session)

    def test_name_is_trimmed(self, test_user, db_session):
        profile = create_profile(test_user.id, "  Alice  ", db=db_session)
        assert profile.name == "Alice"

    def test_fifty_character_name_accepted(self, test_user, db_session):
        profile = create_profile(test_user.id, "x" * 50, db=db_session)
        assert len(profile.name) == 50

    def test_unknown_type_rejected(self, test_user, db_session):
        with pytest.raises(ValidationError):
            create_profile(test_user.id, "Alice", profile_type="teen", db=db_session)

    def test_long_pin_rejected(self, test_user, db_session):
        with pytest.raises(ValidationError, match="PIN must be 4-6 digits"):
            create_profile(test_user.id, "Alice", pin="1234567", db=db_session)

        assert count_profiles(test_user.id, db_session) == 0

    def test_short_pin_ignored_on_create(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", pin="123", db=db_session)

        assert profile.pin is None
        assert profile.has_pin is False

    def test_short_pin_rejected_on_update(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", db=db_session)

        with pytest.raises(ValidationError, match="PIN must be 4-6 digits"):
            update_profile(test_user.id, profile.id, {"pin": "123"}, db_session)

    def test_kids_defaults(self, test_user, db_session):
        profile = create_profile(test_user.id, "Kid", profile_type="kids", db=db_session)

        assert profile.avatar == get_default_avatars("kids")[0]
        assert profile.preferences["maturityRating"] == "7+"

    def test_supplied_preferences_merge_over_defaults(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", preferences={"language": "fr"}, db=db_session)

        assert profile.preferences["language"] == "fr"
        assert profile.preferences["maturityRating"] == "18+"
        assert profile.preferences["autoplay"] is True


@pytest.mark.high
class TestProfileUpdate:

    def test_switch_to_kids_lowers_adult_rating(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", db=db_session)

        profile = update_profile(test_user.id, profile.id, {"type": "kids"}, db_session)

        assert profile.type == "kids"
        assert profile.preferences["maturityRating"] == "7+"

    def test_switch_to_kids_keeps_moderate_rating(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", preferences={"maturityRating": "13+"}, db=db_session)

        profile = update_profile(test_user.id, profile.id, {"type": "kids"}, db_session)

        assert profile.preferences["maturityRating"] == "13+"

    def test_preferences_shallow_merge(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", db=db_session)

        profile = update_profile(test_user.id, profile.id, {"preferences": {"subtitles": False}}, db_session)

        assert profile.preferences["subtitles"] is False
        assert profile.preferences["language"] == "en"

    def test_rename_to_sibling_name_conflicts(self, test_user, db_session):
        create_profile(test_user.id, "Alice", db=db_session)
        bob = create_profile(test_user.id, "Bob", db=db_session)

        with pytest.raises(ConflictError, match="Another profile"):
            update_profile(test_user.id, bob.id, {"name": "Alice"}, db_session)

    def test_rename_to_own_name_allowed(self, test_user, db_session):
        alice = create_profile(test_user.id, "Alice", db=db_session)
        profile = update_profile(test_user.id, alice.id, {"name": "Alice"}, db_session)
        assert profile.name == "Alice"

    def test_empty_avatar_resets_to_default(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", avatar="https://example.com/a.png", db=db_session)

        profile = update_profile(test_user.id, profile.id, {"avatar": ""}, db_session)

        assert profile.avatar == get_default_avatars("adult")[0]

    def test_null_pin_clears(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", pin="1234", db=db_session)
        assert profile.has_pin

        profile = update_profile(test_user.id, profile.id, {"pin": None}, db_session)

        assert profile.pin is None

    def test_update_other_accounts_profile_not_found(self, test_user, test_user_2, db_session):
        profile = create_profile(test_user_2.id, "Alice", db=db_session)

        with pytest.raises(NotFoundError):
            update_profile(test_user.id, profile.id, {"name": "Mine"}, db_session)


@pytest.mark.critical
class TestProfileDeletion:

    def test_last_profile_cannot_be_deleted(self, test_user, db_session):
        profile = create_profile(test_user.id, "Alice", db=db_session)

        with pytest.raises(ForbiddenError, match="Cannot delete the last profile"):
            delete_profile(test_user.id, profile.id, db_session)

        assert count_profiles(test_user.id, db_session) == 1

    def test_deleting_active_promotes_earliest_remaining(self, test_user, db_session):
        first = create_profile(test_user.id, "P1", db=db_session)
        second = create_profile(test_user.id, "P2", db=db_session)
        third = create_profile(test_user.id, "P3", db=db_session)
        # P3 predates P2, so it is the earliest remaining once P1 goes
        third.created_at = second.created_at - timedelta(minutes=5)
        db_session.commit()

        delete_profile(test_user.id, first.id, db_session)

        active = active_profiles(db_session, test_user.id)
        assert [p.id for p in active] == [third.id]
        db_session.refresh(test_user)
        assert test_user.active_profile_id == third.id

    def test_deleting_inactive_keeps_active(self, test_user, db_session):
        first = create_profile(test_user.id, "P1", db=db_session)
        second = create_profile(test_user.id, "P2", db=db_session)

        delete_profile(test_user.id, second.id, db_session)

        assert [p.id for p in active_profiles(db_session, test_user.id)] == [first.id]

    def test_delete_missing_profile_not_found(self, test_user, db_session):
        create_profile(test_user.id, "P1", db=db_session)
        create_profile(test_user.id, "P2", db=db_session)

        with pytest.raises(NotFoundError):
            delete_profile(test_user.id, 9999, db_session)

    def test_delete_removes_owned_history_and_list(self, test_user, db_session):
        create_profile(test_user.id, "P1", db=db_session)
        second = create_profile(test_user.id, "P2", db=db_session)
        add_to_watch_history(test_user.id, second.id, movie(progress=10, duration=100), db_session)
        add_to_my_list(test_user.id, second.id, movie("m2"), db_session)

        delete_profile(test_user.id, second.id, db_session)

        assert db_session.query(ProfileWatchHistoryEntry).count() == 0
        assert db_session.query(ProfileListItem).count() == 0


@pytest.mark.critical
class TestProfileActivation:

    def test_switch_leaves_exactly_one_active(self, test_user, db_session):
        create_profile(test_user.id, "P1", db=db_session)
        second = create_profile(test_user.id, "P2", db=db_session)
        create_profile(test_user.id, "P3", db=db_session)

        profile = switch_active_profile(test_user.id, second.id, db=db_session)

        assert profile.is_active is True
        assert [p.id for p in active_profiles(db_session, test_user.id)] == [second.id]
        db_session.refresh(test_user)
        assert test_user.active_profile_id == second.id
        assert get_active_profile(test_user.id, db_session).id == second.id

    def test_switch_to_pin_profile_requires_pin(self, test_user, db_session):
        create_profile(test_user.id, "P1", db=db_session)
        locked = create_profile(test_user.id, "Locked", pin="4321", db=db_session)

        with pytest.raises(UnauthorizedError, match="Invalid PIN"):
            switch_active_profile(test_user.id, locked.id, db=db_session)
        with pytest.raises(UnauthorizedError):
            switch_active_profile(test_user.id, locked.id, pin="0000", db=db_session)

        profile = switch_active_profile(test_user.id, locked.id, pin="4321", db=db_session)
        assert profile.is_active is True

    def test_failed_switch_changes_nothing(self, test_user, db_session):
        first = create_profile(test_user.id, "P1", db=db_session)
        locked = create_profile(test_user.id, "Locked", pin="4321", db=db_session)

        with pytest.raises(UnauthorizedError):
            switch_active_profile(test_user.id, locked.id, pin="1111", db=db_session)

        assert [p.id for p in active_profiles(db_session, test_user.id)] == [first.id]

    def test_switch_to_other_accounts_profile_not_found(self, test_user, test_user_2, db_session):
        create_profile(test_user.id, "P1", db=db_session)
        foreign = create_profile(test_user_2.id, "P1", db=db_session)

        with pytest.raises(NotFoundError):
            switch_active_profile(test_user.id, foreign.id, db=db_session)

    def test_no_profiles_means_no_active(self, test_user, db_session):
        with pytest.raises(NotFoundError, match="No active profile found"):
            get_active_profile(test_user.id, db_session)

    def test_profiles_listed_oldest_first(self, test_user, db_session):
        for name in ("P1", "P2", "P3"):
            create_profile(test_user.id, name, db=db_session)

        assert [p.name for p in list_profiles(test_user.id, db_session)] == ["P1", "P2", "P3"]


@pytest.mark.critical
class TestProfileWatchHistory:

    def test_same_content_upserts_in_place(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)

        entry = add_to_watch_history(test_user.id, profile.id, movie(progress=5400, duration=6000), db_session)
        assert entry.completed is True

        entry = add_to_watch_history(test_user.id, profile.id, movie(progress=100, duration=6000), db_session)
        assert entry.completed is False
        assert entry.progress == 100

        history = get_watch_history(test_user.id, profile.id, db=db_session)
        assert history["pagination"]["totalItems"] == 1
        assert history["history"][0]["progress"] == 100

    def test_zero_duration_counts_as_completed(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)

        entry = add_to_watch_history(test_user.id, profile.id, movie(progress=0, duration=0), db_session)

        assert entry.completed is True
        db_session.refresh(profile)
        assert profile.completion_rate == 100

    def test_same_id_different_type_is_separate(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)

        add_to_watch_history(test_user.id, profile.id, movie("1"), db_session)
        add_to_watch_history(test_user.id, profile.id, {**movie("1"), "contentType": "tv"}, db_session)

        assert get_watch_history(test_user.id, profile.id, db=db_session)["pagination"]["totalItems"] == 2

    def test_total_watch_time_in_minutes(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)

        add_to_watch_history(test_user.id, profile.id, movie("m1", progress=5400, duration=6000), db_session)
        add_to_watch_history(test_user.id, profile.id, movie("m2", progress=90, duration=6000), db_session)

        db_session.refresh(profile)
        assert profile.total_watch_time == 91

    def test_history_capped_to_most_recent(self, test_user, db_session, monkeypatch):
        monkeypatch.setattr(profile_service, "MAX_WATCH_HISTORY", 3)
        profile = create_profile(test_user.id, "P1", db=db_session)

        for i in range(5):
            add_to_watch_history(test_user.id, profile.id, movie(f"m{i}", progress=60), db_session)

        history = get_watch_history(test_user.id, profile.id, db=db_session)
        assert [h["contentId"] for h in history["history"]] == ["m4", "m3", "m2"]

    def test_missing_fields_rejected(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)

        with pytest.raises(ValidationError):
            add_to_watch_history(test_user.id, profile.id, {"contentId": "m1", "contentType": "movie"}, db_session)

    def test_continue_watching_only_started_unfinished(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)
        add_to_watch_history(test_user.id, profile.id, movie("done", progress=950, duration=1000), db_session)
        add_to_watch_history(test_user.id, profile.id, movie("fresh", progress=0, duration=1000), db_session)
        add_to_watch_history(test_user.id, profile.id, movie("half", progress=500, duration=1000), db_session)

        items = get_continue_watching(test_user.id, profile.id, db_session)

        assert [i.content_id for i in items] == ["half"]

    def test_clear_resets_watch_time(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)
        add_to_watch_history(test_user.id, profile.id, movie(progress=600, duration=1000), db_session)

        clear_watch_history(test_user.id, profile.id, db_session)

        db_session.refresh(profile)
        assert profile.total_watch_time == 0
        assert get_watch_history(test_user.id, profile.id, db=db_session)["history"] == []

    def test_completion_rate(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)
        add_to_watch_history(test_user.id, profile.id, movie("m1", progress=950, duration=1000), db_session)
        add_to_watch_history(test_user.id, profile.id, movie("m2", progress=10, duration=1000), db_session)
        add_to_watch_history(test_user.id, profile.id, movie("m3", progress=10, duration=1000), db_session)

        db_session.refresh(profile)
        assert profile.completion_rate == 33


@pytest.mark.critical
class TestProfileMyList:

    def test_duplicate_add_conflicts(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)
        add_to_my_list(test_user.id, profile.id, movie("m1"), db_session)

        with pytest.raises(ConflictError, match="Content already in list"):
            add_to_my_list(test_user.id, profile.id, movie("m1"), db_session)

        assert get_my_list(test_user.id, profile.id, db=db_session)["pagination"]["totalItems"] == 1

    def test_remove_and_check(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)
        add_to_my_list(test_user.id, profile.id, movie("m1"), db_session)
        assert is_in_my_list(test_user.id, profile.id, "m1", db_session) is True

        remove_from_my_list(test_user.id, profile.id, "m1", db_session)

        assert is_in_my_list(test_user.id, profile.id, "m1", db_session) is False

    def test_remove_absent_not_found(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)

        with pytest.raises(NotFoundError, match="Content not found in list"):
            remove_from_my_list(test_user.id, profile.id, "nope", db_session)

    def test_lists_are_per_profile(self, test_user, db_session):
        first = create_profile(test_user.id, "P1", db=db_session)
        second = create_profile(test_user.id, "P2", db=db_session)
        add_to_my_list(test_user.id, first.id, movie("m1"), db_session)

        add_to_my_list(test_user.id, second.id, movie("m1"), db_session)

        assert is_in_my_list(test_user.id, second.id, "m1", db_session) is True

    def test_pagination(self, test_user, db_session):
        profile = create_profile(test_user.id, "P1", db=db_session)
        for i in range(5):
            add_to_my_list(test_user.id, profile.id, movie(f"m{i}"), db_session)

        page = get_my_list(test_user.id, profile.id, limit=2, page=3, db=db_session)

        assert page["pagination"] == {"currentPage": 3, "totalPages": 3, "totalItems": 5, "itemsPerPage": 2}
        assert [i["contentId"] for i in page["myList"]] == ["m0"]
