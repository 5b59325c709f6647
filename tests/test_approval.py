"""
Tests for the cleanup override approval workflow.

Tests verify:
1. Codes are bound to an email, expire and are single-use
2. Approval requests are blocked until the override is justified
3. Overridden quotes cannot be saved without a valid code
"""

import pytest
from datetime import date, timedelta
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

JUNE = date(2025, 6, 15)


class TestApprovalCodeStore:
    """Issuing and validating codes."""

    def test_issue_four_digit_code(self, approval_store):
        approval = approval_store.issue("Owner@Acme.example")
        assert len(approval.code) == 4
        assert approval.code.isdigit()
        assert 1000 <= int(approval.code) <= 9999
        assert approval.contact_email == "owner@acme.example"
        assert approval.used is False

    def test_expiry_from_ttl(self, approval_store):
        approval = approval_store.issue("owner@acme.example")
        assert approval.expires_at - approval.created_at == timedelta(minutes=60)

    def test_validate_matching_code(self, approval_store):
        approval = approval_store.issue("owner@acme.example")
        assert approval_store.validate(approval.code, "owner@acme.example")
        assert approval_store.validate(approval.code, " OWNER@acme.example ")

    def test_code_bound_to_email(self, approval_store):
        approval = approval_store.issue("owner@acme.example")
        assert not approval_store.validate(approval.code, "someone@else.example")

    def test_unknown_code(self, approval_store):
        approval_store.issue("owner@acme.example")
        assert not approval_store.validate("not-a-code", "owner@acme.example")

    def test_code_is_single_use(self, approval_store):
        approval = approval_store.issue("owner@acme.example")
        assert approval_store.mark_used(approval.code, "owner@acme.example") is True
        assert not approval_store.validate(approval.code, "owner@acme.example")

    def test_mark_unknown_code(self, approval_store):
        assert approval_store.mark_used("1234", "owner@acme.example") is False

    def test_expired_code(self, approval_store):
        approval = approval_store.issue("owner@acme.example")
        later = approval.expires_at + timedelta(seconds=1)
        assert not approval_store.validate(approval.code, "owner@acme.example", now=later)

    def test_purge_expired(self, approval_store):
        approval = approval_store.issue("owner@acme.example")
        assert approval_store.purge_expired(now=approval.created_at) == 0
        assert approval_store.purge_expired(now=approval.expires_at) == 1
        assert approval_store.get(approval.code, "owner@acme.example") is None

    def test_active_codes(self, approval_store):
        first = approval_store.issue("a@acme.example")
        approval_store.issue("b@acme.example")
        approval_store.mark_used(first.code, "a@acme.example")
        assert [a.contact_email for a in approval_store.active_codes()] == ["b@acme.example"]

    def test_email_required(self, approval_store):
        with pytest.raises(ValueError):
            approval_store.issue("  ")

    def test_snapshot_kept(self, approval_store):
        approval = approval_store.issue("owner@acme.example", {"overrideReason": "Other"})
        assert approval.quote_snapshot == {"overrideReason": "Other"}
        assert "quote_snapshot" not in approval.to_dict()

    def test_settings_control_code_shape(self, monkeypatch):
        from approval.codes import ApprovalCodeStore
        from config.settings import get_settings
        monkeypatch.setenv("QUOTE_APPROVAL_CODE_TTL_MINUTES", "5")
        monkeypatch.setenv("QUOTE_APPROVAL_CODE_LENGTH", "6")
        get_settings.cache_clear()
        store = ApprovalCodeStore()
        approval = store.issue("owner@acme.example")
        assert len(approval.code) == 6
        assert approval.expires_at - approval.created_at == timedelta(minutes=5)

    def test_process_store_is_shared(self):
        from approval.codes import get_approval_store, reset_approval_store
        store = get_approval_store()
        assert get_approval_store() is store
        reset_approval_store()
        assert get_approval_store() is not store


class TestApprovalRequestBlocker:
    """When the approval button is enabled."""

    @pytest.fixture
    def override(self, bookkeeping_quote):
        return {**bookkeeping_quote, "cleanupOverride": True, "cleanupMonths": 3}

    def test_ready(self, override):
        from approval.policy import approval_request_blocker
        quote = {**override, "overrideReason": "Brand New Business"}
        assert approval_request_blocker(quote, today=JUNE) is None

    def test_contact_email_required(self, override):
        from approval.policy import approval_request_blocker
        quote = {**override, "contactEmail": "", "overrideReason": "Brand New Business"}
        assert approval_request_blocker(quote, today=JUNE) == "Contact email is required"

    def test_reason_required(self, override):
        from approval.policy import approval_request_blocker
        assert approval_request_blocker(override, today=JUNE) == "Please select a reason for override"

    @pytest.mark.parametrize("reason", ["Brand New Business", "Books Confirmed Current"])
    def test_reduced_months_required(self, override, reason):
        from approval.policy import approval_request_blocker
        quote = {**override, "overrideReason": reason, "cleanupMonths": 6}
        assert "Reduce cleanup months" in approval_request_blocker(quote, today=JUNE)

    def test_other_needs_explanation(self, override):
        from approval.policy import approval_request_blocker
        quote = {**override, "overrideReason": "Other", "customSetupFee": "500"}
        assert approval_request_blocker(quote, today=JUNE) == "Please explain the reason for override"

    def test_other_needs_fee_or_reduced_months(self, override):
        from approval.policy import approval_request_blocker
        quote = {
            **override,
            "overrideReason": "Other",
            "customOverrideReason": "Referral partner",
            "cleanupMonths": 6,
        }
        assert "custom setup fee" in approval_request_blocker(quote, today=JUNE)
        assert approval_request_blocker({**quote, "customSetupFee": "500"}, today=JUNE) is None
        assert approval_request_blocker({**quote, "cleanupMonths": 2}, today=JUNE) is None

    def test_minimum_follows_calendar(self):
        from approval.policy import minimum_cleanup_months
        assert minimum_cleanup_months(date(2025, 1, 31)) == 1
        assert minimum_cleanup_months(date(2025, 12, 1)) == 12


class TestRequireOverrideApproval:
    """The save gate."""

    def test_no_override_passes(self, bookkeeping_quote, approval_store):
        from approval.policy import require_override_approval
        assert require_override_approval(bookkeeping_quote, approval_store) is False

    def test_override_without_code(self, bookkeeping_quote, approval_store):
        from approval.policy import ApprovalRequiredError, require_override_approval
        with pytest.raises(ApprovalRequiredError):
            require_override_approval({**bookkeeping_quote, "cleanupOverride": True}, approval_store)

    def test_override_with_wrong_code(self, bookkeeping_quote, approval_store):
        from approval.policy import InvalidApprovalCodeError, require_override_approval
        approval_store.issue("someone@else.example")
        with pytest.raises(InvalidApprovalCodeError):
            require_override_approval({**bookkeeping_quote, "cleanupOverride": True}, approval_store, "0000")

    def test_valid_code_is_consumed(self, bookkeeping_quote, approval_store):
        from approval.policy import InvalidApprovalCodeError, require_override_approval
        quote = {**bookkeeping_quote, "cleanupOverride": True}
        approval = approval_store.issue(quote["contactEmail"])
        assert require_override_approval(quote, approval_store, approval.code) is True
        with pytest.raises(InvalidApprovalCodeError):
            require_override_approval(quote, approval_store, approval.code)

    def test_manual_setup_fee_without_override_flag(self, bookkeeping_quote, approval_store):
        """A custom setup fee replaces the computed one, so it needs a code too."""
        from approval.policy import ApprovalRequiredError, require_override_approval
        quote = {**bookkeeping_quote, "cleanupMonths": 12, "overrideReason": "Other", "customSetupFee": "1"}
        with pytest.raises(ApprovalRequiredError):
            require_override_approval(quote, approval_store)

        approval = approval_store.issue(quote["contactEmail"])
        assert require_override_approval(quote, approval_store, approval.code) is True


class TestNeedsOverrideApproval:
    """Which quotes need an approval code to be saved."""

    def test_plain_quote(self, bookkeeping_quote):
        from approval.policy import needs_override_approval
        assert needs_override_approval(bookkeeping_quote) is False

    def test_override_flag(self, bookkeeping_quote):
        from approval.policy import needs_override_approval
        assert needs_override_approval({**bookkeeping_quote, "cleanupOverride": True}) is True

    def test_manual_setup_fee(self, bookkeeping_quote):
        from approval.policy import needs_override_approval
        quote = {**bookkeeping_quote, "overrideReason": "Other", "customSetupFee": "750"}
        assert needs_override_approval(quote) is True

    @pytest.mark.parametrize("fee", ["", "0", "n/a"])
    def test_unused_custom_fee(self, bookkeeping_quote, fee):
        from approval.policy import needs_override_approval
        quote = {**bookkeeping_quote, "overrideReason": "Other", "customSetupFee": fee}
        assert needs_override_approval(quote) is False

    def test_custom_fee_with_other_reason(self, bookkeeping_quote):
        from approval.policy import needs_override_approval
        quote = {**bookkeeping_quote, "overrideReason": "Brand New Business", "customSetupFee": "750"}
        assert needs_override_approval(quote) is False
