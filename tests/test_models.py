"""Tests for vault-init data models."""

import pytest
from pydantic import ValidationError

from vault_init.models import (
    BootstrapAction,
    BootstrapCredentialBundle,
    HealthSnapshot,
    TickOutcome,
    TickResult,
    UnsealProgress,
)


class TestHealthSnapshot:
    def test_steady(self):
        assert HealthSnapshot(initialized=True, sealed=False).steady
        assert not HealthSnapshot(initialized=True, sealed=True).steady
        assert not HealthSnapshot(initialized=False, sealed=False).steady

    def test_keeps_unknown_fields(self):
        health = HealthSnapshot.model_validate({
            "initialized": True,
            "sealed": False,
            "replication_dr_mode": "disabled",
        })
        assert health.model_dump()["replication_dr_mode"] == "disabled"

    def test_requires_initialized_and_sealed(self):
        with pytest.raises(ValidationError):
            HealthSnapshot.model_validate({"standby": True})


class TestBootstrapCredentialBundle:
    def test_unseal_keys_prefers_base64(self):
        bundle = BootstrapCredentialBundle(
            keys=["h1", "h2"], keys_base64=["b1", "b2"], root_token="t",
        )
        assert bundle.unseal_keys == ["b1", "b2"]

    def test_unseal_keys_falls_back_to_hex(self):
        bundle = BootstrapCredentialBundle(keys=["h1"], root_token="t")
        assert bundle.unseal_keys == ["h1"]

    def test_parses_vault_init_response(self):
        bundle = BootstrapCredentialBundle.model_validate_json(
            '{"keys": ["a"], "keys_base64": ["YQ=="], "recovery_keys": null,'
            ' "recovery_keys_base64": null, "root_token": "hvs.x"}'
        )
        assert bundle.keys_base64 == ["YQ=="]
        assert bundle.secret_shares is None

    def test_str_hides_token(self):
        bundle = BootstrapCredentialBundle(keys_base64=["k"], root_token="hvs.secret")
        assert "hvs.secret" not in str(bundle)
        assert "1 shares" in str(bundle)


class TestUnsealProgress:
    def test_vault_aliases(self):
        status = UnsealProgress.model_validate(
            {"sealed": True, "t": 3, "n": 5, "progress": 1, "nonce": "abc"},
        )
        assert (status.threshold, status.shares, status.progress) == (3, 5, 1)

    def test_field_names_accepted(self):
        status = UnsealProgress(sealed=False, threshold=3, shares=5)
        assert status.progress == 0


class TestTickResult:
    def test_json_dump(self):
        result = TickResult(
            outcome=TickOutcome.BOOTSTRAPPED,
            actions=[BootstrapAction.JOIN, BootstrapAction.UNSEAL],
        )
        data = result.model_dump(mode="json")
        assert data["outcome"] == "bootstrapped"
        assert data["actions"] == ["join", "unseal"]
