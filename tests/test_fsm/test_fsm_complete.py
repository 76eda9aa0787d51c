"""
Testes abrangentes para o módulo FSM de sessões de vendor.

- Testamos comportamento e contrato público
- Um teste cobre múltiplos componentes relacionados
- Foco em cenários válidos + inválidos + bordas
"""

import pytest

from fsm import (
    CHECKABLE_STATES,
    DEFAULT_INITIAL_STATE,
    PAIRABLE_STATES,
    READY_STATES,
    VALID_TRANSITIONS,
    FSMStateMachine,
    GuardResult,
    SessionState,
    StateTransition,
    TransitionResult,
    Trigger,
    create_fsm,
    evaluate_guards,
    get_valid_targets,
    is_checkable,
    is_ready,
    is_transition_valid,
    is_valid_state,
    validate_transition_map,
)
from fsm.rules.guards import (
    DEFAULT_GUARDS,
    guard_explicit_pairing,
    guard_same_state,
    guard_valid_state,
)
from fsm.states.session import SessionState as DirectSessionState


class TestSessionStateSets:
    """SessionState e conjuntos derivados."""

    def test_enum_has_five_states_with_explicit_values(self) -> None:
        assert [s.value for s in SessionState] == [
            "unpaired",
            "pairing",
            "connected",
            "degraded",
            "expired",
        ]
        assert str(SessionState.CONNECTED) == "connected"
        assert DirectSessionState is SessionState

    def test_ready_checkable_and_pairable_sets(self) -> None:
        assert READY_STATES == {SessionState.CONNECTED, SessionState.DEGRADED}
        assert CHECKABLE_STATES == READY_STATES | {SessionState.PAIRING}
        assert PAIRABLE_STATES == {SessionState.UNPAIRED, SessionState.EXPIRED}
        assert DEFAULT_INITIAL_STATE == SessionState.UNPAIRED

        assert is_ready(SessionState.DEGRADED) is True
        assert is_ready(SessionState.PAIRING) is False
        assert is_checkable(SessionState.PAIRING) is True
        assert is_checkable(SessionState.EXPIRED) is False

    def test_is_valid_state(self) -> None:
        assert is_valid_state(SessionState.EXPIRED) is True
        assert is_valid_state("expired") is False
        assert is_valid_state(None) is False


class TestValidTransitions:
    """Grafo VALID_TRANSITIONS."""

    def test_map_is_consistent(self) -> None:
        assert validate_transition_map() == []
        assert set(VALID_TRANSITIONS) == set(SessionState)

    @pytest.mark.parametrize(
        ("from_state", "to_state"),
        [
            (SessionState.UNPAIRED, SessionState.PAIRING),
            (SessionState.PAIRING, SessionState.CONNECTED),
            (SessionState.PAIRING, SessionState.EXPIRED),
            (SessionState.CONNECTED, SessionState.DEGRADED),
            (SessionState.CONNECTED, SessionState.EXPIRED),
            (SessionState.DEGRADED, SessionState.CONNECTED),
            (SessionState.DEGRADED, SessionState.DEGRADED),
            (SessionState.DEGRADED, SessionState.EXPIRED),
            (SessionState.EXPIRED, SessionState.PAIRING),
        ],
    )
    def test_allowed_edges(self, from_state: SessionState, to_state: SessionState) -> None:
        assert is_transition_valid(from_state, to_state) is True
        assert to_state in get_valid_targets(from_state)

    @pytest.mark.parametrize(
        ("from_state", "to_state"),
        [
            (SessionState.UNPAIRED, SessionState.CONNECTED),
            (SessionState.PAIRING, SessionState.DEGRADED),
            (SessionState.CONNECTED, SessionState.PAIRING),
            (SessionState.CONNECTED, SessionState.CONNECTED),
            (SessionState.EXPIRED, SessionState.CONNECTED),
            (SessionState.EXPIRED, SessionState.UNPAIRED),
        ],
    )
    def test_forbidden_edges(self, from_state: SessionState, to_state: SessionState) -> None:
        assert is_transition_valid(from_state, to_state) is False


class TestGuards:
    """Guards individuais e evaluate_guards."""

    def test_guard_result_factories(self) -> None:
        allowed = GuardResult.allow()
        denied = GuardResult.deny("motivo")

        assert allowed.allowed is True
        assert allowed.reason is None
        assert denied.allowed is False
        assert denied.reason == "motivo"

    def test_guard_valid_state_rejects_non_enum(self) -> None:
        assert guard_valid_state(SessionState.UNPAIRED, SessionState.PAIRING, "x").allowed
        assert not guard_valid_state("unpaired", SessionState.PAIRING, "x").allowed  # type: ignore[arg-type]

    def test_self_loop_only_for_degraded_check_failed(self) -> None:
        assert guard_same_state(
            SessionState.DEGRADED, SessionState.DEGRADED, Trigger.CHECK_FAILED
        ).allowed
        assert not guard_same_state(
            SessionState.DEGRADED, SessionState.DEGRADED, Trigger.CHECK_RECOVERED
        ).allowed
        assert not guard_same_state(
            SessionState.CONNECTED, SessionState.CONNECTED, Trigger.CHECK_FAILED
        ).allowed

    def test_pairing_requires_explicit_trigger(self) -> None:
        assert guard_explicit_pairing(
            SessionState.EXPIRED, SessionState.PAIRING, Trigger.START_PAIRING
        ).allowed
        denied = guard_explicit_pairing(
            SessionState.EXPIRED, SessionState.PAIRING, Trigger.CHECK_RECOVERED
        )
        assert denied.allowed is False
        assert "start_pairing" in (denied.reason or "")

    def test_evaluate_guards_stops_at_first_denial(self) -> None:
        calls: list[str] = []

        def _deny(from_state, to_state, trigger) -> GuardResult:
            calls.append("deny")
            return GuardResult.deny("primeiro")

        def _never(from_state, to_state, trigger) -> GuardResult:
            calls.append("never")
            return GuardResult.allow()

        result = evaluate_guards(
            SessionState.UNPAIRED, SessionState.PAIRING, Trigger.START_PAIRING, [_deny, _never]
        )

        assert result.reason == "primeiro"
        assert calls == ["deny"]
        assert len(DEFAULT_GUARDS) == 3


class TestTransitionRecords:
    """StateTransition e TransitionResult."""

    def test_state_transition_log_dict(self) -> None:
        transition = StateTransition(
            from_state=SessionState.CONNECTED,
            to_state=SessionState.DEGRADED,
            trigger=Trigger.CHECK_FAILED,
            metadata={"consecutive_failures": 1},
        )

        data = transition.to_log_dict()

        assert data["from_state"] == "connected"
        assert data["to_state"] == "degraded"
        assert data["trigger"] == "check_failed"
        assert data["metadata"] == {"consecutive_failures": 1}
        assert transition.is_self_loop is False

    def test_state_transition_requires_trigger(self) -> None:
        with pytest.raises(ValueError, match="trigger"):
            StateTransition(
                from_state=SessionState.UNPAIRED,
                to_state=SessionState.PAIRING,
                trigger="  ",
            )

    def test_transition_result_validation(self) -> None:
        with pytest.raises(ValueError):
            TransitionResult(success=True)
        with pytest.raises(ValueError):
            TransitionResult(success=False)

        failed = TransitionResult(success=False, error_reason="nope")
        assert failed.transition is None


class TestFSMStateMachine:
    """Fluxo completo na FSMStateMachine."""

    def test_create_fsm_defaults(self) -> None:
        machine = create_fsm("vendor-1")

        assert machine.current_state == SessionState.UNPAIRED
        assert machine.vendor_id == "vendor-1"
        assert machine.history == []
        assert machine.get_valid_targets() == {SessionState.PAIRING}

    def test_full_lifecycle(self) -> None:
        machine = FSMStateMachine(vendor_id="vendor-1")
        steps = [
            (SessionState.PAIRING, Trigger.START_PAIRING),
            (SessionState.CONNECTED, Trigger.REMOTE_ACTIVE),
            (SessionState.DEGRADED, Trigger.CHECK_FAILED),
            (SessionState.DEGRADED, Trigger.CHECK_FAILED),
            (SessionState.CONNECTED, Trigger.CHECK_RECOVERED),
            (SessionState.EXPIRED, Trigger.EXPLICIT_REVOKE),
            (SessionState.PAIRING, Trigger.START_PAIRING),
        ]

        for target, trigger in steps:
            result = machine.transition(target, trigger)
            assert result.success is True, result.error_reason

        assert machine.current_state == SessionState.PAIRING
        assert len(machine.history) == len(steps)
        assert machine.history[2].to_state == SessionState.DEGRADED
        assert machine.is_checkable is True
        assert machine.is_ready is False

    def test_invalid_edge_keeps_state(self) -> None:
        machine = create_fsm("vendor-1", SessionState.UNPAIRED)

        result = machine.transition(SessionState.CONNECTED, Trigger.REMOTE_ACTIVE)

        assert result.success is False
        assert "UNPAIRED" in (result.error_reason or "")
        assert machine.current_state == SessionState.UNPAIRED
        assert machine.history == []

    def test_expired_does_not_resurrect_without_start_pairing(self) -> None:
        machine = create_fsm("vendor-1", SessionState.EXPIRED)

        assert machine.can_transition_to(SessionState.PAIRING, Trigger.CHECK_RECOVERED) is False
        assert machine.can_transition_to(SessionState.PAIRING, Trigger.START_PAIRING) is True

        result = machine.transition(SessionState.PAIRING, Trigger.REMOTE_ACTIVE)
        assert result.success is False
        assert machine.current_state == SessionState.EXPIRED

    def test_history_is_copy_and_summaries(self) -> None:
        machine = create_fsm("vendor-9")
        machine.transition(
            SessionState.PAIRING, Trigger.START_PAIRING, metadata={"session_name": "loja"}
        )

        history = machine.history
        history.clear()

        assert len(machine.history) == 1
        summary = machine.get_state_summary()
        assert summary == {
            "vendor_id": "vendor-9",
            "current_state": "pairing",
            "is_ready": False,
            "transition_count": 1,
            "valid_targets": ["connected", "expired"],
        }
        assert machine.get_history_summary()[0]["metadata"] == {"session_name": "loja"}
