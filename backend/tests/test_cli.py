"""
CLI command tests (flask system/users/credits/maintenance).
"""

from datetime import timedelta

import pytest

from authentiks.cli import DEFAULT_SUPERADMIN_EMAIL
from authentiks.models import BillingSetting, OtpChallenge, PricePlan, SessionToken, User
from authentiks.services import credit_service, session_service
from authentiks.time_utils import utcnow
from conftest import PASSWORD


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestSystemInit:

    def test_bootstrap(self, runner, db_session):
        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output
        assert f"PASS Created superadmin: {DEFAULT_SUPERADMIN_EMAIL}" in result.output
        assert "PASS Price plans: 3 added" in result.output

        assert db_session.query(User).filter_by(role="superadmin").count() == 1
        assert db_session.query(PricePlan).count() == 3
        assert db_session.query(BillingSetting).count() == 1

    def test_idempotent(self, runner, db_session):
        runner.invoke(args=["system", "init"])
        result = runner.invoke(args=["system", "init", "--email", "other@authentiks.in"])
        assert result.exit_code == 0
        assert f"PASS Using existing superadmin: {DEFAULT_SUPERADMIN_EMAIL}" in result.output
        assert "PASS Price plans: 0 added" in result.output
        assert db_session.query(User).count() == 1

    def test_weak_password_reported(self, runner, db_session):
        result = runner.invoke(args=["system", "init", "--password", "short"])
        assert "FAIL Failed to create superadmin" in result.output
        assert db_session.query(User).count() == 0

    def test_reset_requires_confirmation(self, runner, db_session, admin):
        result = runner.invoke(args=["system", "reset-db"], input="n\n")
        assert result.exit_code != 0
        assert db_session.query(User).count() == 1


class TestUsersCommands:

    def test_create_and_list(self, runner, db_session):
        result = runner.invoke(args=[
            "users", "create", "--email", "cli@authentiks.in", "--password", PASSWORD, "--role", "manager",
        ])
        assert result.exit_code == 0, result.output
        assert "PASS Created user: cli@authentiks.in with role 'manager'" in result.output

        listing = runner.invoke(args=["users", "list", "--role", "manager"])
        assert "cli@authentiks.in" in listing.output

    def test_duplicate(self, runner, db_session, admin):
        result = runner.invoke(args=[
            "users", "create", "--email", "ops@authentiks.in", "--password", PASSWORD, "--role", "admin",
        ])
        assert "FAIL Failed to create user: User already exists" in result.output

    def test_invalid_role(self, runner, db_session):
        result = runner.invoke(args=[
            "users", "create", "--email", "x@authentiks.in", "--password", PASSWORD, "--role", "root",
        ])
        assert result.exit_code != 0

    def test_empty_list(self, runner, db_session):
        assert "No users found." in runner.invoke(args=["users", "list"]).output


class TestCreditsCommands:

    def test_grant_and_verify(self, runner, db_session, company):
        result = runner.invoke(args=["credits", "grant", "--company-id", str(company.id), "--amount", "500"])
        assert result.exit_code == 0, result.output
        assert f"PASS Granted 500 credits to company {company.id}. Balance: 500" in result.output

        db_session.refresh(company)
        assert company.qr_credits == 500

        verify = runner.invoke(args=["credits", "verify", "--company-id", str(company.id)])
        assert f"PASS Ledger consistent for company {company.id}" in verify.output

    def test_verify_detects_mismatch(self, runner, db_session, company):
        credit_service.grant_credits(company.id, 10, None)
        company.qr_credits = 11
        db_session.commit()

        verify = runner.invoke(args=["credits", "verify", "--company-id", str(company.id)])
        assert "FAIL Ledger mismatch" in verify.output

    def test_unknown_company(self, runner, db_session):
        result = runner.invoke(args=["credits", "grant", "--company-id", "999", "--amount", "5"])
        assert "FAIL Failed to grant credits" in result.output

    def test_rejects_non_positive(self, runner, db_session, company):
        result = runner.invoke(args=["credits", "grant", "--company-id", str(company.id), "--amount", "0"])
        assert "FAIL" in result.output
        db_session.refresh(company)
        assert company.qr_credits == 0


class TestMaintenance:

    def test_cleanup(self, runner, db_session, admin, consumer):
        _, live_token = session_service.create_session(admin)
        _, dead_token = session_service.create_session(consumer)
        session_service.revoke_session(dead_token)

        now = utcnow()
        db_session.add(OtpChallenge(
            mobile=consumer.mobile, code_hash="x", attempts=0,
            created_at=now - timedelta(minutes=10), expires_at=now - timedelta(minutes=5),
        ))
        db_session.commit()

        result = runner.invoke(args=["maintenance", "cleanup-sessions"])
        assert "PASS Deleted 1 session(s) and 1 OTP challenge(s)" in result.output
        assert db_session.query(SessionToken).count() == 1
        assert session_service.validate_session(live_token) is not None
