"""
Health endpoint and CLI command tests.
"""

from tradebook.models import User


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
    assert resp.json["checks"]["database"]["status"] == "healthy"


def test_cors_for_allowed_origin(client, db_session):
    resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    resp = client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


class TestUsersCli:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--name", "Root Admin",
            "--email", "root@tradebook.test",
            "--password", "Password123!",
            "--role", "admin",
        ])
        assert result.exit_code == 0, result.output
        assert "PASS Created user" in result.output

        db_session.expire_all()
        user = db_session.query(User).filter_by(email="root@tradebook.test").one()
        assert user.role == "ADMIN"

        result = runner.invoke(args=["users", "list"])
        assert "root@tradebook.test" in result.output

    def test_weak_password(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--name", "Weak",
            "--email", "weak@tradebook.test",
            "--password", "password",
        ])
        assert result.exit_code == 1
        assert "Password validation failed" in result.output
