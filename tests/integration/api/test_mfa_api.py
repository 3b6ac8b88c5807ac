import pyotp
import pytest
from httpx import AsyncClient

from src.domain.entities import AuditAction

PASSWORD = "SecurePass123!"
CREDENTIALS = {"email": "alice@bookit.test", "password": PASSWORD}


async def _enable_mfa(client: AsyncClient, headers: dict):
    """Run initialize + verify-setup; returns (manual entry key, backup codes)"""
    response = await client.post("/mfa/initialize", headers=headers)
    assert response.status_code == 200
    key = response.json()["manual_entry_key"]

    response = await client.post(
        "/mfa/verify-setup", json={"token": pyotp.TOTP(key).now()}, headers=headers
    )
    assert response.status_code == 200
    return key, response.json()["backup_codes"]


@pytest.mark.asyncio
async def test_mfa_setup_and_login(client: AsyncClient, create_account, auth_headers, fetch_account):
    """Enable MFA, then log in with a TOTP code

    Given MFA setup was verified
    When the account logs in with only a password
    Then MFA is required and no token is issued
    And a second attempt with a valid code succeeds
    """
    account = await create_account()
    headers = auth_headers(account)

    # Initialize
    response = await client.post("/mfa/initialize", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "MFA setup initialized"
    assert data["qr_code"].startswith("data:image/png;base64,")
    assert data["provisioning_uri"].startswith("otpauth://totp/")
    assert data["backup_codes"] is None
    key = data["manual_entry_key"]

    # Pending setup does not change login
    response = await client.post("/auth/login", json=CREDENTIALS)
    assert response.json()["outcome"] == "AUTHENTICATED"

    # The secret is stored encrypted
    stored = await fetch_account()
    assert stored.mfa_secret and stored.mfa_secret != key
    assert stored.mfa_enabled is False

    # Verify setup
    response = await client.post(
        "/mfa/verify-setup", json={"token": pyotp.TOTP(key).now()}, headers=headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["mfa_enabled"] is True
    assert len(data["backup_codes"]) == 10

    # Password alone now requires the second factor
    response = await client.post("/auth/login", json=CREDENTIALS)
    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "MFA_REQUIRED"
    assert data["requires_mfa"] is True
    assert data["access_token"] is None
    assert data["user_id"] == str(account.id)

    # Wrong code
    response = await client.post("/auth/login", json={**CREDENTIALS, "mfa_code": "000000"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MFA_INVALID"
    assert (await fetch_account()).failed_login_attempts == 0

    # Right code
    response = await client.post(
        "/auth/login", json={**CREDENTIALS, "mfa_code": pyotp.TOTP(key).now()}
    )
    assert response.status_code == 200
    assert response.json()["outcome"] == "AUTHENTICATED"
    assert response.json()["access_token"]


@pytest.mark.asyncio
async def test_login_with_backup_code_once(client: AsyncClient, create_account, auth_headers):
    account = await create_account()
    headers = auth_headers(account)
    _, backup_codes = await _enable_mfa(client, headers)

    response = await client.post(
        "/auth/login", json={**CREDENTIALS, "mfa_backup_code": backup_codes[0]}
    )
    assert response.status_code == 200
    assert response.json()["access_token"]

    response = await client.post(
        "/auth/login", json={**CREDENTIALS, "mfa_backup_code": backup_codes[0]}
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MFA_INVALID"

    response = await client.get("/mfa/status", headers=headers)
    assert response.json() == {
        "mfa_enabled": True,
        "mfa_setup_completed": True,
        "remaining_backup_codes": 9,
    }


@pytest.mark.asyncio
async def test_verify_endpoint(client: AsyncClient, create_account, auth_headers, fetch_events):
    account = await create_account()
    key, backup_codes = await _enable_mfa(client, auth_headers(account))

    response = await client.post(
        f"/mfa/verify/{account.id}", json={"token": pyotp.TOTP(key).now()}
    )
    assert response.status_code == 200
    assert response.json()["verified"] is True
    assert response.json()["used_backup_code"] is False

    response = await client.post(
        f"/mfa/verify/{account.id}", json={"backup_code": backup_codes[1]}
    )
    assert response.json()["used_backup_code"] is True
    assert response.json()["remaining_backup_codes"] == 9

    response = await client.post(f"/mfa/verify/{account.id}", json={})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MFA_CODE_REQUIRED"

    response = await client.post(f"/mfa/verify/{account.id}", json={"token": "000000"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MFA_INVALID"

    assert len(await fetch_events(action=AuditAction.MFA_FAILED)) == 1


@pytest.mark.asyncio
async def test_initialize_twice_when_enabled(client: AsyncClient, create_account, auth_headers):
    account = await create_account()
    headers = auth_headers(account)
    await _enable_mfa(client, headers)

    response = await client.post("/mfa/initialize", headers=headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MFA_ALREADY_ENABLED"


@pytest.mark.asyncio
async def test_verify_setup_without_initialize(client: AsyncClient, create_account, auth_headers):
    account = await create_account()

    response = await client.post(
        "/mfa/verify-setup", json={"token": "123456"}, headers=auth_headers(account)
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MFA_NOT_INITIALIZED"


@pytest.mark.asyncio
async def test_regenerate_and_disable(client: AsyncClient, create_account, auth_headers):
    account = await create_account()
    headers = auth_headers(account)
    _, old_codes = await _enable_mfa(client, headers)

    # Regenerate requires the password
    response = await client.post(
        "/mfa/regenerate-backup-codes", json={"password": "WrongPassword!"}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PASSWORD"

    response = await client.post(
        "/mfa/regenerate-backup-codes", json={"password": PASSWORD}, headers=headers
    )
    assert response.status_code == 200
    new_codes = response.json()["backup_codes"]
    assert len(new_codes) == 10

    response = await client.post(
        "/auth/login", json={**CREDENTIALS, "mfa_backup_code": old_codes[0]}
    )
    assert response.status_code == 400

    # Disable
    response = await client.post("/mfa/disable", json={"password": PASSWORD}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {
        "message": "MFA has been disabled successfully",
        "mfa_enabled": False,
    }

    response = await client.post("/auth/login", json=CREDENTIALS)
    assert response.json()["outcome"] == "AUTHENTICATED"

    response = await client.get("/mfa/status", headers=headers)
    assert response.json()["remaining_backup_codes"] == 0


@pytest.mark.asyncio
async def test_mfa_routes_reject_invalid_token(client: AsyncClient):
    response = await client.get(
        "/mfa/status", headers={"Authorization": "Bearer not-a-real-token"}
    )

    assert response.status_code == 401
