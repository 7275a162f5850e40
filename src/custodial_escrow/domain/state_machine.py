"""Deal State Machine Guard.

Uses python-statemachine to enforce legal state transitions at the domain level.
No matter what the API or MCP layer does, an illegal transition
(e.g., FUNDED -> FUNDED) will raise TransitionNotAllowed.

The state machine is instantiated per-deal and validates transitions before
the registry row's status field is updated.

Transition table:
    (absent)  -> CREATED   (create; modelled by the initial state)
    CREATED   -> FUNDED    (deposit)
"""

from __future__ import annotations

from statemachine import State, StateMachine


class DealStateMachine(StateMachine):
    """State machine that guards the deal lifecycle.

    Usage:
        sm = DealStateMachine(current_status="CREATED")
        sm.deposit()   # transitions to FUNDED
        sm.status      # "FUNDED"
    """

    # --- States ---
    CREATED = State("CREATED", initial=True)
    FUNDED = State("FUNDED", final=True)

    # --- Events / Transitions ---
    deposit = CREATED.to(FUNDED)

    def __init__(self, current_status: str = "CREATED") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The current DealStatus value (e.g., "FUNDED").
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches DealStatus)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.id for event in self.allowed_events]


def validate_transition(current_status: str, event_name: str) -> str:
    """Validate a state transition and return the new status.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = DealStateMachine(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    event_method()
    return sm.status
