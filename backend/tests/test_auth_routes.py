from conftest import PASSWORD, PROFILES, training_payload


def test_register_defaults_to_field_officer(app):
    client = app.test_client()
    response = client.post("/auth/register", json={
        "email": "New.Officer@Example.org",
        "password": "longenough",
        "full_name": "New Officer",
    })

    assert response.status_code == 201
    assert response.get_json()["role"] == "field_officer"


def test_register_validation(app, profiles):
    client = app.test_client()

    assert client.post("/auth/register", json={"email": "x@example.org"}).status_code == 400
    assert client.post("/auth/register", json={
        "email": "not-an-email", "password": "longenough", "full_name": "X"
    }).status_code == 400
    assert client.post("/auth/register", json={
        "email": "short@example.org", "password": "short", "full_name": "X"
    }).status_code == 400

    response = client.post("/auth/register", json={
        "email": "x@example.org", "password": "longenough", "full_name": "X", "role": "superuser"
    })
    assert response.status_code == 400
    assert "superuser" in response.get_json()["error"]

    duplicate = client.post("/auth/register", json={
        "email": PROFILES["admin"][0], "password": "longenough", "full_name": "Again"
    })
    assert duplicate.status_code == 400


def test_login_sets_cookie_and_me_reports_role_gate(login):
    client = login("sdma")
    me = client.get("/auth/me").get_json()

    assert me["email"] == PROFILES["sdma"][0]
    assert me["role"] == "sdma_official"
    assert me["can_create_training"] is True
    assert "password_hash" not in me

    assert login("field").get("/auth/me").get_json()["can_create_training"] is False


def test_failed_login_is_audited(app, profiles, audit_log):
    client = app.test_client()
    response = client.post("/auth/login", json={"email": PROFILES["admin"][0], "password": "wrong"})

    assert response.status_code == 401
    assert "LOGIN_FAILED" in audit_log.read_text()


def test_successful_login_is_audited(login, audit_log):
    login("admin")
    assert "LOGIN_SUCCESS" in audit_log.read_text()


def test_requests_without_token_are_rejected(app):
    response = app.test_client().get("/auth/me")
    assert response.status_code == 401
    assert "error" in response.get_json()


def test_logout_revokes_token(app, profiles):
    client = app.test_client()
    client.post("/auth/login", json={"email": PROFILES["admin"][0], "password": PASSWORD})
    token = client.get_cookie("access_token_cookie").value

    assert client.post("/auth/logout").status_code == 200

    # replaying the old token must fail even though the cookie was cleared
    client.set_cookie("access_token_cookie", token)
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.get_json()["error"] == "Token has been revoked"


def test_self_registration_cannot_claim_a_privileged_role(app, profiles, audit_log):
    client = app.test_client()
    response = client.post("/auth/register", json={
        "email": "x@example.org", "password": "longenough", "full_name": "X", "role": "admin"
    })
    assert response.status_code == 201
    assert response.get_json()["role"] == "field_officer"
    assert "x@example.org as field_officer" in audit_log.read_text()

    client.post("/auth/login", json={"email": "x@example.org", "password": "longenough"})
    assert client.get("/auth/me").get_json()["can_create_training"] is False
    assert client.post("/trainings/create", json=training_payload()).status_code == 403


def test_admin_can_register_privileged_roles(login):
    admin = login("admin")
    response = admin.post("/auth/register", json={
        "email": "ati@example.org", "password": "longenough", "full_name": "ATI Coordinator",
        "role": "ati_coordinator",
    })
    assert response.status_code == 201
    assert response.get_json()["role"] == "ati_coordinator"


def test_non_admin_cannot_grant_roles(login):
    response = login("sdma").post("/auth/register", json={
        "email": "ngo@example.org", "password": "longenough", "full_name": "NGO", "role": "ngo_coordinator"
    })
    assert response.get_json()["role"] == "field_officer"


def test_register_with_non_object_body(app):
    assert app.test_client().post("/auth/register", json=["email"]).status_code == 400
