import pytest
from datetime import datetime, timezone
from app.models.expenses import PaymentMethod, ShareStatus
from app.services.settlement_state import (
    MARK_RECEIVED, MARK_SENT, RejectionReason, authorize_transition, partition_shares, transition_values
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestAuthorizeTransition:

    def test_debtor_may_mark_pending_share_sent(self, ledger_share):
        share = ledger_share("s1", "A", "C", "33.34")
        assert authorize_transition(MARK_SENT, share, "A") is None

    def test_only_debtor_may_mark_sent(self, ledger_share):
        share = ledger_share("s1", "A", "C", "33.34")
        assert authorize_transition(MARK_SENT, share, "C") == RejectionReason.not_debtor
        assert authorize_transition(MARK_SENT, share, "B") == RejectionReason.not_debtor

    def test_mark_sent_only_from_pending(self, ledger_share):
        verifying = ledger_share("s1", "A", "C", "1.00", ShareStatus.verifying)
        settled = ledger_share("s2", "A", "C", "1.00", ShareStatus.settled)
        assert authorize_transition(MARK_SENT, verifying, "A") == RejectionReason.invalid_status
        assert authorize_transition(MARK_SENT, settled, "A") == RejectionReason.invalid_status

    @pytest.mark.parametrize("status", [ShareStatus.pending, ShareStatus.verifying])
    def test_creditor_may_mark_received(self, ledger_share, status):
        share = ledger_share("s1", "A", "C", "33.34", status)
        assert authorize_transition(MARK_RECEIVED, share, "C") is None

    def test_only_creditor_may_mark_received(self, ledger_share):
        share = ledger_share("s1", "A", "C", "33.34", ShareStatus.verifying)
        assert authorize_transition(MARK_RECEIVED, share, "A") == RejectionReason.not_creditor

    def test_settled_is_terminal(self, ledger_share):
        share = ledger_share("s1", "A", "C", "33.34", ShareStatus.settled)
        assert authorize_transition(MARK_RECEIVED, share, "C") == RejectionReason.invalid_status

    def test_unknown_share(self):
        assert authorize_transition(MARK_SENT, None, "A") == RejectionReason.not_found

    def test_ownership_checked_before_status(self, ledger_share):
        share = ledger_share("s1", "A", "C", "1.00", ShareStatus.settled)
        assert authorize_transition(MARK_SENT, share, "B") == RejectionReason.not_debtor


@pytest.mark.unit
class TestPartitionShares:

    def test_bulk_request_partially_succeeds(self, ledger_share):
        shares = {
            "s1": ledger_share("s1", "A", "C", "10.00"),
            "s2": ledger_share("s2", "B", "C", "10.00"),
            "s3": ledger_share("s3", "A", "B", "5.00", ShareStatus.settled),
        }

        accepted, rejected = partition_shares(MARK_SENT, ["s1", "s2", "s3", "missing"], shares, "A")

        assert accepted == ["s1"]
        assert rejected == [
            ("s2", RejectionReason.not_debtor),
            ("s3", RejectionReason.invalid_status),
            ("missing", RejectionReason.not_found),
        ]

    def test_duplicate_ids_considered_once(self, ledger_share):
        shares = {"s1": ledger_share("s1", "A", "C", "10.00")}
        accepted, rejected = partition_shares(MARK_SENT, ["s1", "s1"], shares, "A")
        assert accepted == ["s1"]
        assert rejected == []


@pytest.mark.unit
class TestTransitionValues:

    def test_mark_sent_values(self):
        values = transition_values(MARK_SENT, "A", NOW, PaymentMethod.venmo)

        assert values == {"status": ShareStatus.verifying, "updated_at": NOW, "payment_method": PaymentMethod.venmo}
        assert "settled_at" not in values

    def test_mark_sent_requires_payment_method(self):
        with pytest.raises(ValueError):
            transition_values(MARK_SENT, "A", NOW)

    def test_mark_received_values(self):
        values = transition_values(MARK_RECEIVED, "C", NOW)

        assert values == {"status": ShareStatus.settled, "updated_at": NOW, "settled_at": NOW, "settled_by": "C"}
