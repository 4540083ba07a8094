"""
Optimistic mutation with a compensating action.

Lifecycle of one mutation:
  Idle → Pending (optimistic change applied) → Committed | RolledBack

apply() runs synchronously before the request, so readers see the change
at once. If send() raises, compensate() receives the snapshot taken just
before apply() and must put it back exactly. No retries: a rolled-back
mutation needs a fresh dispatch.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")


class MutationKind(Enum):
    MOVE = "move"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

    @property
    def settled(self) -> bool:
        return self in (MutationState.COMMITTED, MutationState.ROLLED_BACK)


@dataclass
class PendingMutation(Generic[S]):
    """An in-flight mutation; lives only until it settles."""
    kind: MutationKind
    target_id: Optional[int]
    previous_snapshot: Optional[S] = None
    params: Dict[str, Any] = field(default_factory=dict)
    state: MutationState = MutationState.IDLE
    error: Optional[BaseException] = None


async def run_optimistic(
    mutation: PendingMutation[S],
    snapshot: Callable[[], S],
    apply: Callable[[], None],
    send: Callable[[], Awaitable[R]],
    compensate: Callable[[S], None],
    failures: tuple = (Exception,),
) -> Optional[R]:
    """
    Snapshot, apply, send, and roll back on failure.

    Returns:
        The result of send() when committed, None when rolled back. The
        mutation's state and error record which outcome happened.

    Only exceptions in `failures` are treated as a rejected request;
    anything else propagates after the rollback.
    """
    if mutation.state != MutationState.IDLE:
        raise RuntimeError(f"{mutation.kind.value} mutation already {mutation.state.value}")

    mutation.previous_snapshot = snapshot()
    apply()
    mutation.state = MutationState.PENDING

    try:
        result = await send()
    except failures as e:
        compensate(mutation.previous_snapshot)
        mutation.state = MutationState.ROLLED_BACK
        mutation.error = e
        logger.warning(
            f"Rolled back {mutation.kind.value} of task {mutation.target_id}: {e}"
        )
        return None
    except BaseException as e:
        # Cancellation or a bug: still never leave a half-applied change
        compensate(mutation.previous_snapshot)
        mutation.state = MutationState.ROLLED_BACK
        mutation.error = e
        raise

    mutation.state = MutationState.COMMITTED
    return result
