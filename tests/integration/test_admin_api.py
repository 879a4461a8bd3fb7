from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from activity_tracker.models.activity import Activity
from activity_tracker.models.role import ADMIN_ROLE, USER_ROLE
from activity_tracker.models.user import User


@pytest.fixture()
def admin(make_user):
    return make_user("boss", roles=(ADMIN_ROLE, USER_ROLE))


@pytest.mark.integration
@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("get", "/admin/users"),
        ("get", "/admin/activities"),
        ("get", "/admin/stats"),
        ("delete", "/admin/users/1"),
        ("delete", "/admin/activities/1"),
    ],
)
def test_admin_routes_require_admin_role(api_client, make_user, auth_headers, method, path):
    user = make_user("ola")

    anonymous = getattr(api_client, method)(path)
    plain_user = getattr(api_client, method)(path, headers=auth_headers(user))

    assert anonymous.status_code == 401
    assert plain_user.status_code == 403


@pytest.mark.integration
def test_list_users_counts_activities(api_client, admin, make_user, make_activity, auth_headers):
    ola = make_user("ola", first_name="Ola")
    make_activity(ola)
    make_activity(ola)

    response = api_client.get("/admin/users", headers=auth_headers(admin))

    assert response.status_code == 200
    by_id = {row["id"]: row for row in response.json()}
    assert by_id[ola.id]["activities_count"] == 2
    assert by_id[ola.id]["first_name"] == "Ola"
    assert by_id[ola.id]["roles"] == ["User"]
    assert by_id[admin.id]["activities_count"] == 0
    assert "Admin" in by_id[admin.id]["roles"]


@pytest.mark.integration
def test_list_activities_filters(api_client, admin, make_user, make_activity, auth_headers):
    now = datetime.now(timezone.utc)
    ola = make_user("ola")
    other = make_user("other")
    recent_ride = make_activity(ola, activity_type="Cycling", distance_m=25_000)
    old_run = make_activity(ola, distance_m=3_000, started_at=now - timedelta(days=60))
    other_run = make_activity(other, distance_m=8_000)
    headers = auth_headers(admin)

    def ids(**params):
        response = api_client.get("/admin/activities", params=params, headers=headers)
        assert response.status_code == 200
        return {row["id"] for row in response.json()}

    assert ids() == {recent_ride.id, old_run.id, other_run.id}
    assert ids(user_id=ola.id) == {recent_ride.id, old_run.id}
    assert ids(activity_type="Cycling") == {recent_ride.id}
    assert ids(min_distance=5_000) == {recent_ride.id, other_run.id}
    assert ids(date_from=(now - timedelta(days=7)).isoformat()) == {recent_ride.id, other_run.id}
    assert ids(date_to=(now - timedelta(days=30)).isoformat()) == {old_run.id}

    rows = api_client.get("/admin/activities", params={"user_id": other.id}, headers=headers).json()
    assert rows[0]["username"] == "other"


@pytest.mark.integration
def test_delete_user_removes_their_activities(api_client, db_session, admin, make_user, make_activity, auth_headers):
    ola = make_user("ola")
    activity = make_activity(ola)
    ola_id, activity_id = ola.id, activity.id

    response = api_client.delete(f"/admin/users/{ola_id}", headers=auth_headers(admin))

    assert response.status_code == 204
    db_session.expire_all()
    assert db_session.get(User, ola_id) is None
    assert db_session.get(Activity, activity_id) is None


@pytest.mark.integration
def test_admin_cannot_delete_self(api_client, admin, auth_headers):
    response = api_client.delete(f"/admin/users/{admin.id}", headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["detail"] == "Nie możesz usunąć własnego konta."


@pytest.mark.integration
def test_delete_missing_targets_is_not_found(api_client, admin, auth_headers):
    headers = auth_headers(admin)

    missing_user = api_client.delete("/admin/users/999999", headers=headers)
    missing_activity = api_client.delete("/admin/activities/999999", headers=headers)

    assert missing_user.status_code == 404
    assert missing_user.json()["detail"] == "Nie znaleziono użytkownika."
    assert missing_activity.status_code == 404
    assert missing_activity.json()["detail"] == "Nie znaleziono aktywności."


@pytest.mark.integration
def test_delete_activity(api_client, db_session, admin, make_user, make_activity, auth_headers):
    activity = make_activity(make_user("ola"))
    activity_id = activity.id

    response = api_client.delete(f"/admin/activities/{activity_id}", headers=auth_headers(admin))

    assert response.status_code == 204
    db_session.expire_all()
    assert db_session.get(Activity, activity_id) is None


@pytest.mark.integration
def test_stats_aggregate_everything(api_client, admin, make_user, make_activity, auth_headers):
    ola = make_user("ola")
    make_activity(ola, distance_m=10_500, duration_s=3_600)
    make_activity(ola, distance_m=2_000, duration_s=1_800, started_at=datetime.now(timezone.utc) - timedelta(days=90))

    response = api_client.get("/admin/stats", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == {
        "total_users": 2,
        "total_activities": 2,
        "total_distance_km": 12.5,
        "total_duration_hours": 1.5,
    }


@pytest.mark.integration
def test_stats_on_empty_database_are_zero(api_client, admin, auth_headers):
    response = api_client.get("/admin/stats", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json() == {
        "total_users": 1,
        "total_activities": 0,
        "total_distance_km": 0.0,
        "total_duration_hours": 0.0,
    }
