"""Tests for the DealStateMachine domain guard.

These tests verify that:
    1. CREATED -> FUNDED is the only transition.
    2. FUNDED is final; nothing leads back to CREATED.
    3. The convenience function validate_transition works.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from custodial_escrow.domain.state_machine import (
    DealStateMachine,
    validate_transition,
)


class TestHappyPath:
    def test_created_to_funded(self) -> None:
        sm = DealStateMachine("CREATED")
        assert sm.status == "CREATED"

        sm.deposit()
        assert sm.status == "FUNDED"

    def test_default_status_is_created(self) -> None:
        assert DealStateMachine().status == "CREATED"


class TestIllegalTransitions:
    def test_funded_cannot_be_funded_again(self) -> None:
        sm = DealStateMachine("FUNDED")
        with pytest.raises(TransitionNotAllowed):
            sm.deposit()

    def test_funded_is_final(self) -> None:
        sm = DealStateMachine("FUNDED")
        assert sm.get_allowed_events() == []

    def test_future_statuses_are_not_declared(self) -> None:
        for status in ("DELIVERED", "RELEASED", "REFUNDED"):
            with pytest.raises(ValueError, match="Unknown status"):
                DealStateMachine(status)


class TestAllowedEvents:
    def test_created_allowed(self) -> None:
        sm = DealStateMachine("CREATED")
        assert sm.get_allowed_events() == ["deposit"]


class TestValidateTransitionFunction:
    def test_valid_transition(self) -> None:
        assert validate_transition("CREATED", "deposit") == "FUNDED"

    def test_invalid_transition(self) -> None:
        with pytest.raises(TransitionNotAllowed):
            validate_transition("FUNDED", "deposit")

    def test_invalid_event_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown event"):
            validate_transition("CREATED", "release")

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            DealStateMachine("ABSENT")
