"""Tests for approval step statuses and transition rules."""

import pytest

from backoffice.core.approval.states import (
    StepStatus, StepAction,
    TERMINAL_STATUSES,
    approver_role, is_approver_role,
    can_transition, get_target_status, get_transition_rule,
)


class TestStepStatuses:
    """Test status definitions."""

    def test_all_statuses_defined(self):
        expected = ["initiated", "pending", "approved", "rejected", "cancelled"]
        assert [s.value for s in StepStatus] == expected

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {StepStatus.REJECTED, StepStatus.CANCELLED}

    def test_status_compares_to_stored_string(self):
        assert StepStatus.PENDING == "pending"


class TestStepTransitions:
    """Test valid transitions."""

    def test_pending_transitions(self):
        assert can_transition(StepStatus.PENDING, StepAction.APPROVE)
        assert can_transition(StepStatus.PENDING, StepAction.REJECT)
        assert can_transition(StepStatus.PENDING, StepAction.CANCEL)

    def test_approved_can_only_be_cancelled(self):
        assert can_transition(StepStatus.APPROVED, StepAction.CANCEL)
        assert not can_transition(StepStatus.APPROVED, StepAction.APPROVE)
        assert not can_transition(StepStatus.APPROVED, StepAction.REJECT)

    @pytest.mark.parametrize("status", [StepStatus.INITIATED, StepStatus.REJECTED, StepStatus.CANCELLED])
    def test_no_transitions_out_of(self, status):
        for action in StepAction:
            assert not can_transition(status, action)

    def test_accepts_plain_strings(self):
        assert can_transition("pending", StepAction.APPROVE)

    def test_get_target_status(self):
        assert get_target_status(StepStatus.PENDING, StepAction.APPROVE) == StepStatus.APPROVED
        assert get_target_status(StepStatus.PENDING, StepAction.REJECT) == StepStatus.REJECTED
        assert get_target_status(StepStatus.REJECTED, StepAction.APPROVE) is None

    def test_reject_requires_reason(self):
        rule = get_transition_rule(StepStatus.PENDING, StepAction.REJECT)
        assert rule.requires_reason is True

    def test_approve_and_cancel_need_no_reason(self):
        assert not get_transition_rule(StepStatus.PENDING, StepAction.APPROVE).requires_reason
        assert not get_transition_rule(StepStatus.APPROVED, StepAction.CANCEL).requires_reason


class TestRoles:

    def test_approver_role(self):
        assert approver_role(2) == "approver@2"
        assert is_approver_role("approver@2")
        assert not is_approver_role("initiator")
