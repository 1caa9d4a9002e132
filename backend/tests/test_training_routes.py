import io

import pytest

from sajag.extensions import db
from sajag.models import TrainingProgram, AuditLog
from sajag.realtime import get_change_feed, INSERT, UPDATE
from conftest import training_payload


def _create(client, **overrides):
    response = client.post("/trainings/create", json=training_payload(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()["training"]


def _add_participant(client, training_id, name, **fields):
    response = client.post(f"/trainings/{training_id}/participants", json={"name": name, **fields})
    assert response.status_code == 201, response.get_json()
    return response.get_json()["participant"]


def test_home(app):
    assert "Sajag" in app.test_client().get("/").get_json()["message"]


def test_unknown_route_is_json_404(app):
    response = app.test_client().get("/nowhere")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Not found"}


@pytest.mark.parametrize("role", ["admin", "sdma"])
def test_creator_roles_can_create(login, role):
    training = _create(login(role))

    assert training["status"] == "planned"
    assert training["disaster_types"] == ["cyclone", "flood"]
    assert training["actual_participants"] == 0


def test_field_officer_cannot_create_or_update(login, make_training):
    client = login("field")
    assert client.post("/trainings/create", json=training_payload()).status_code == 403

    training_id = make_training()
    response = client.put(f"/trainings/{training_id}/update", json={"status": "ongoing"})
    assert response.status_code == 403


def test_create_rejects_invalid_input(login):
    client = login("sdma")

    response = client.post("/trainings/create", json=training_payload(disaster_types=[]))
    assert response.status_code == 400
    assert response.get_json()["error"] == "Please select at least one disaster type"

    response = client.post("/trainings/create", json=training_payload(target_participants="many"))
    assert response.status_code == 400


def test_create_accepts_form_data(login, app):
    payload = training_payload()
    payload["disaster_types"] = ["flood", "fire"]
    response = login("admin").post("/trainings/create", data=payload)

    assert response.status_code == 201
    assert response.get_json()["training"]["disaster_types"] == ["flood", "fire"]


def test_create_publishes_and_audits(login, app, audit_log):
    received = []
    get_change_feed(app).subscribe("training_programs", received.append, event=INSERT)

    training = _create(login("sdma"))

    assert [c.new["id"] for c in received] == [training["id"]]
    assert "TRAINING_CREATED" in audit_log.read_text()


def test_list_filters_and_paginates(login, make_training):
    make_training(title="Flood Drill", state="Odisha", disaster_types=["flood"], status="ongoing")
    make_training(title="Quake Seminar", state="Assam", disaster_types=["earthquake"], training_type="seminar")
    make_training(title="Cyclone Camp", state="Odisha", disaster_types=["cyclone", "flood"])
    client = login("field")

    body = client.get("/trainings/list").get_json()
    assert body["total"] == 3
    assert body["can_create_training"] is False

    assert client.get("/trainings/list?state=Odisha").get_json()["total"] == 2
    assert client.get("/trainings/list?status=ongoing").get_json()["total"] == 1
    assert client.get("/trainings/list?training_type=seminar").get_json()["total"] == 1
    assert client.get("/trainings/list?disaster_type=flood").get_json()["total"] == 2
    assert client.get("/trainings/list?search=quake").get_json()["total"] == 1
    assert client.get("/trainings/list?status=paused").status_code == 400

    page = client.get("/trainings/list?per_page=2&page=2").get_json()
    assert len(page["trainings"]) == 1


def test_detail_and_missing_training(login, make_training):
    client = login("field")
    training_id = make_training()
    for index in range(7):
        _add_participant(client, training_id, f"Participant {index}", attendance_status=index < 2)

    body = client.get(f"/trainings/{training_id}").get_json()
    assert body["training"]["id"] == training_id
    assert len(body["participants"]) == 5
    assert body["participant_count"] == 7
    assert body["present_count"] == 2
    assert body["can_edit"] is False

    assert client.get("/trainings/does-not-exist").status_code == 404


def test_partial_update(login, make_training, app):
    training_id = make_training(status="planned")
    received = []
    get_change_feed(app).subscribe("training_programs", received.append, event=UPDATE)

    response = login("sdma").patch(f"/trainings/{training_id}/update", json={"status": "ongoing"})

    assert response.status_code == 200
    assert response.get_json()["training"]["status"] == "ongoing"
    assert received[0].old["status"] == "planned"
    assert received[0].new["status"] == "ongoing"


def test_update_rejects_bad_dates(login, make_training):
    training_id = make_training()
    response = login("sdma").put(f"/trainings/{training_id}/update", json={"end_date": "2020-01-01"})
    assert response.status_code == 400


def test_form_schema(login):
    client = login("sdma")
    schema = client.get("/trainings/form_schema").get_json()
    fields = {f["name"]: f for f in schema["fields"]}

    assert schema["can_submit"] is True
    assert fields["disaster_types"]["type"] == "checkbox_group"
    assert "actual_participants" not in fields

    assert client.get("/trainings/form_schema?model=Unknown").status_code == 400


def test_attendance_recomputes_actual_participants(login, make_training, app, audit_log):
    client = login("field")
    training_id = make_training(target_participants=3)
    first = _add_participant(client, training_id, "Anita")
    second = _add_participant(client, training_id, "Ramesh")
    _add_participant(client, training_id, "Sujata")

    url = f"/trainings/{training_id}/participants/{{}}/attendance"
    assert client.put(url.format(first["id"])).get_json()["actual_participants"] == 1
    assert client.put(url.format(second["id"])).get_json()["actual_participants"] == 2
    # toggling again marks absent
    assert client.put(url.format(first["id"])).get_json()["actual_participants"] == 1
    # explicit value is idempotent
    assert client.put(url.format(second["id"]), json={"attendance_status": True}).get_json()["actual_participants"] == 1

    with app.app_context():
        assert db.session.get(TrainingProgram, training_id).actual_participants == 1

    listing = client.get(f"/trainings/{training_id}/participants").get_json()
    assert listing["summary"] == {"total": 3, "present": 1, "attendance_rate": 33}
    assert "ATTENDANCE_TOGGLED" in audit_log.read_text()


def test_attendance_for_participant_of_other_training(login, make_training):
    client = login("field")
    first_training = make_training()
    other_training = make_training(title="Other")
    participant = _add_participant(client, first_training, "Anita")

    response = client.put(f"/trainings/{other_training}/participants/{participant['id']}/attendance")
    assert response.status_code == 404


def test_attendance_change_reaches_active_monitor_subscribers(login, make_training, app):
    training_id = make_training(status="ongoing")
    client = login("field")
    participant = _add_participant(client, training_id, "Anita")

    received = []
    get_change_feed(app).subscribe("training_programs", received.append, filter=("status", "ongoing"))
    client.put(f"/trainings/{training_id}/participants/{participant['id']}/attendance")

    assert received[0].new["actual_participants"] == 1
    assert received[0].old["actual_participants"] == 0


def test_feedback(login, make_training):
    client = login("field")
    training_id = make_training()
    participant = _add_participant(client, training_id, "Anita")
    url = f"/trainings/{training_id}/participants/{participant['id']}/feedback"

    assert client.put(url, json={"feedback_rating": 6}).status_code == 400

    response = client.put(url, json={"feedback_rating": 4, "feedback_comments": "Useful drill"})
    assert response.status_code == 200
    assert response.get_json()["participant"]["feedback_rating"] == 4


def test_post_update_with_custom_type(login, make_training, app, audit_log):
    training_id = make_training(title="Cyclone Drill")
    received = []
    get_change_feed(app).subscribe("training_updates", received.append, event=INSERT)

    response = login("field").post(f"/trainings/{training_id}/updates", json={
        "update_type": "Weather Delay",
        "message": "Heavy rain, drill moved indoors",
    })

    assert response.status_code == 201
    update = response.get_json()["update"]
    assert update["update_type"] == "Weather Delay"
    assert update["training_program"]["title"] == "Cyclone Drill"
    assert update["profile"]["full_name"] == "Field Officer"
    assert received[0].new["id"] == update["id"]
    assert "UPDATE_POSTED" in audit_log.read_text()


def test_post_update_requires_message(login, make_training):
    training_id = make_training()
    response = login("field").post(f"/trainings/{training_id}/updates", json={"update_type": "Progress Update"})
    assert response.status_code == 400


def test_post_update_rejects_non_image_upload(login, make_training):
    pytest.importorskip("magic")
    training_id = make_training()
    response = login("field").post(
        f"/trainings/{training_id}/updates",
        data={
            "update_type": "Progress Update",
            "message": "Photos attached",
            "images": (io.BytesIO(b"plain text, not a picture"), "photo.png"),
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 400


def test_recent_updates_and_notifications(login, make_training):
    client = login("field")
    training_id = make_training()
    for index in range(7):
        client.post(f"/trainings/{training_id}/updates", json={
            "update_type": "Progress Update", "message": f"Day {index}"
        })

    recent = client.get("/updates/recent").get_json()["updates"]
    assert len(recent) == 5
    assert {u["message"] for u in recent} <= {f"Day {i}" for i in range(7)}
    assert all(u["training_program"]["title"] == "Flood Drill" for u in recent)

    notifications = client.get("/updates/notifications").get_json()
    assert notifications["count"] == 7

    listed = client.get(f"/trainings/{training_id}/updates").get_json()
    assert len(listed["updates"]) == 7
    assert "Progress Update" in listed["suggested_types"]


def test_metrics(login, make_training):
    training_id = make_training()
    client = login("sdma")

    assert client.post(f"/trainings/{training_id}/metrics", json={"metric_name": "evacuation_minutes"}).status_code == 400
    assert client.post(f"/trainings/{training_id}/metrics", json={
        "metric_name": "evacuation_minutes", "metric_value": "18.5"
    }).status_code == 201
    assert login("field").post(f"/trainings/{training_id}/metrics", json={
        "metric_name": "evacuation_minutes", "metric_value": 20
    }).status_code == 403

    body = client.get(f"/trainings/{training_id}/metrics").get_json()
    assert body["metrics"][0]["metric_value"] == 18.5
    assert body["readings_per_metric"] == {"evacuation_minutes": 1}


def test_dashboard_summary(login, make_training):
    make_training(status="ongoing", actual_participants=10, state="Odisha")
    make_training(status="completed", actual_participants=30, state="Assam")
    make_training(status="planned", state="Odisha")

    body = login("sdma").get("/dashboard/summary").get_json()

    assert body["totalTrainings"] == 3
    assert body["ongoingTrainings"] == 1
    assert body["totalParticipants"] == 40
    assert body["statesCovered"] == 2
    assert len(body["recentTrainings"]) == 3
    assert body["can_create_training"] is True


def test_analytics_summary(login, make_training):
    from datetime import datetime

    make_training(status="ongoing", actual_participants=10, target_participants=20,
                  start_date=datetime(2024, 3, 5), budget=5_000_000)
    make_training(status="completed", actual_participants=30, target_participants=30,
                  start_date=datetime(2024, 1, 10), end_date=datetime(2024, 1, 11),
                  disaster_types=["flood", "cyclone"], budget=10_000_000)

    body = login("field").get("/analytics/summary").get_json()

    assert body["status_counts"] == {"ongoing": 1, "completed": 1}
    assert body["participants"] == {"actual_total": 40, "target_total": 50}
    assert body["participation_rate"] == "80.0"
    assert body["participation_rate_display"] == "80.0%"
    assert body["budget_display"] == "₹1.5Cr"
    assert body["disaster_type_counts"] == {"flood": 2, "cyclone": 1}
    assert list(body["monthly_trend"]) == ["Mar 2024", "Jan 2024"]
    assert list(body["monthly_trend_chronological"]) == ["Jan 2024", "Mar 2024"]


def test_analytics_summary_with_no_programs(login):
    body = login("field").get("/analytics/summary").get_json()
    assert body["total_trainings"] == 0
    assert body["participation_rate"] == "0"
    assert body["status_counts"] == {}


def test_map_markers(login, make_training):
    located = make_training(latitude=19.81, longitude=85.83, status="ongoing")
    make_training(title="No location")
    client = login("field")

    body = client.get("/map/markers").get_json()
    assert [f["id"] for f in body["features"]] == [located]
    assert body["features"][0]["geometry"]["coordinates"] == [85.83, 19.81]
    assert body["base_layer"] == "satellite"

    assert client.get("/map/markers?base_layer=street").get_json()["base_layer"] == "street"
    assert client.get("/map/markers?base_layer=terrain").status_code == 400
    assert set(client.get("/map/layers").get_json()["layers"]) == {"satellite", "street"}


def test_map_marker_selection(login, make_training):
    located = make_training(latitude=19.81, longitude=85.83, description="Full record")
    unlocated = make_training(title="No location")
    client = login("field")

    body = client.get(f"/map/markers/{located}/select").get_json()
    assert body["training"]["description"] == "Full record"
    assert client.get(f"/map/markers/{unlocated}/select").status_code == 404


def test_rate_limit_breach_is_recorded(app):
    from utils.logging import log_rate_limit_violation
    from types import SimpleNamespace

    with app.test_request_context("/auth/login", method="POST"):
        response = log_rate_limit_violation(SimpleNamespace(limit="5 per 1 minute"))
        assert response.status_code == 429

    with app.app_context():
        log = AuditLog.query.one()
        assert log.action.startswith("RATE_LIMIT_EXCEEDED: POST /auth/login")


def test_infinite_budget_is_refused_and_analytics_keeps_working(login):
    client = login("sdma")

    response = client.post("/trainings/create", json=training_payload(budget="inf"))
    assert response.status_code == 400
    assert response.get_json()["error"] == "budget must be a number"

    _create(client, budget=2_000_000)
    summary = client.get("/analytics/summary")
    assert summary.status_code == 200
    assert summary.get_json()["budget_display"] == "₹0.2Cr"


@pytest.mark.parametrize("body", [[], "text", 42, ["attendance_status"]])
def test_json_body_that_is_not_an_object_is_a_400(login, make_training, body):
    training_id = make_training()
    participant = _add_participant(login("field"), training_id, "Anita")

    assert login("sdma").post("/trainings/create", json=body).status_code == 400
    client = login("field")
    assert client.post(f"/trainings/{training_id}/participants", json=body).status_code == 400
    assert client.post(f"/trainings/{training_id}/updates", json=body).status_code == 400
    assert client.put(
        f"/trainings/{training_id}/participants/{participant['id']}/feedback", json=body
    ).status_code == 400
    # an unusable body falls back to a plain toggle
    toggled = client.put(f"/trainings/{training_id}/participants/{participant['id']}/attendance", json=body)
    assert toggled.status_code == 200
    assert toggled.get_json()["actual_participants"] == 1
