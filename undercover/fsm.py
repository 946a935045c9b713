from __future__ import annotations

from statemachine import State, StateMachine

from undercover.api.models import GamePhase, SessionState


class GameFSM(StateMachine):
    """FSM wrapper around SessionState.

    - phases: configuring -> revealing -> voting -> concluded -> (configuring | revealing)
    - round data is mutated by GameSession; the FSM only guards transitions.
    """

    configuring = State(
        GamePhase.configuring.value,
        value=GamePhase.configuring.value,
        initial=True,
    )
    revealing = State(GamePhase.revealing.value, value=GamePhase.revealing.value)
    voting = State(GamePhase.voting.value, value=GamePhase.voting.value)
    concluded = State(GamePhase.concluded.value, value=GamePhase.concluded.value)

    start_round = configuring.to(revealing) | concluded.to(revealing)
    finish_reveals = revealing.to(voting)
    conclude = voting.to(concluded)
    reset_round = revealing.to(configuring) | voting.to(configuring) | concluded.to(configuring)

    def __init__(self, session: SessionState):
        self.session = session
        super().__init__(start_value=session.phase.value)

    def sync_phase_to_model(self) -> None:
        self.session.phase = GamePhase(str(self.current_state.value))
