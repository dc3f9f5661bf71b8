"""
Apply-then-confirm mutations with snapshot rollback.

A destructive edit first passes an explicit yes/no gate, is then applied to
local state right away, and is finally sent to the platform. A failed remote
call restores the exact pre-mutation snapshot. One mutator serves one list and
runs one mutation at a time; requests made while it is busy are dropped.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from ctfbot.config import Config
from ctfbot.services.stale_guard import StaleGuard
from ctfbot.utils.exceptions import GENERIC_MESSAGE, ApiError, AuthError, ValidationError

logger = logging.getLogger(__name__)

S = TypeVar('S')

Confirmer = Callable[[str], Awaitable[bool]]
MessageSource = Union[str, Callable[[Any], Optional[str]], None]


class FlashMessage:
    """Transient message area that clears itself after ``duration`` seconds."""

    def __init__(self, guard: StaleGuard, duration: float = None, on_change: Optional[Callable[[], Any]] = None):
        self.guard = guard
        self.duration = Config.FLASH_MESSAGE_SECONDS if duration is None else duration
        self.on_change = on_change
        self.text: Optional[str] = None
        self.is_error = False
        self._handle: Optional[asyncio.TimerHandle] = None

    def show(self, text: str, error: bool = False):
        self.guard.cancel(self._handle)
        self.text = text
        self.is_error = error
        self._handle = self.guard.schedule(self.duration, self._expire)

    def success(self, text: str):
        self.show(text, error=False)

    def error(self, text: str):
        self.show(text, error=True)

    def clear(self):
        self.guard.cancel(self._handle)
        self._handle = None
        self.text = None
        self.is_error = False

    def _expire(self):
        self._handle = None
        self.text = None
        self.is_error = False
        if self.on_change is not None:
            self.on_change()


class MutationOutcome(str, Enum):
    APPLIED = "applied"
    ROLLED_BACK = "rolled_back"
    DECLINED = "declined"
    IGNORED_BUSY = "ignored_busy"
    INVALID = "invalid"
    DISCARDED = "discarded"  # panel unmounted before the outcome arrived


@dataclass
class MutationIntent:
    """The one in-flight optimistic edit of a list."""
    target_id: Any
    snapshot: Any = None
    busy: bool = True


class OptimisticMutator(Generic[S]):
    """
    Runs optimistic mutations against one piece of list state.

    Args:
        get_state: Returns the current local state
        set_state: Replaces the local state and re-renders
        guard: Owning panel's guard
        flash: Transient message area for outcomes
        confirmer: Async yes/no gate, awaited with a prompt before destructive edits
    """

    def __init__(
        self,
        get_state: Callable[[], S],
        set_state: Callable[[S], None],
        guard: StaleGuard,
        flash: FlashMessage,
        confirmer: Optional[Confirmer] = None
    ):
        self.get_state = get_state
        self.set_state = set_state
        self.guard = guard
        self.flash = flash
        self.confirmer = confirmer
        self.intent: Optional[MutationIntent] = None

    @property
    def busy(self) -> bool:
        return self.intent is not None

    async def mutate(
        self,
        target_id: Any,
        apply: Callable[[S], S],
        remote: Callable[[], Awaitable[Any]],
        *,
        prompt: Optional[str] = None,
        validate: Optional[Callable[[], None]] = None,
        reconcile: Optional[Callable[[S, Any], S]] = None,
        success_message: MessageSource = None,
        failure_message: str = GENERIC_MESSAGE
    ) -> MutationOutcome:
        """
        Run one mutation through the confirm / apply / remote phases.

        Args:
            target_id: Id of the edited row, kept on the intent for logging
            apply: Pure function from current state to the optimistic state
            remote: Performs the platform call
            prompt: Confirmation text; when given the confirmer must say yes
            validate: Raises ValidationError to reject before anything changes
            reconcile: Folds the server response into state after success
            success_message: Text, or callable on the response, for the flash
            failure_message: Used when the error carries no message

        Returns:
            What happened, see MutationOutcome

        Raises:
            AuthError: After rolling back, so the panel can show its access panel
        """
        if self.busy:
            logger.debug(f"Mutation on {target_id} ignored; {self.intent.target_id} still in flight")
            return MutationOutcome.IGNORED_BUSY

        self.intent = MutationIntent(target_id=target_id)
        try:
            if validate is not None:
                try:
                    validate()
                except ValidationError as e:
                    self.flash.error(e.user_message)
                    return MutationOutcome.INVALID

            if prompt is not None:
                if self.confirmer is None:
                    raise ValueError("A confirmation prompt needs a confirmer")
                confirmed = await self.confirmer(prompt)
                if not self.guard.alive:
                    return MutationOutcome.DISCARDED
                if not confirmed:
                    logger.debug(f"Mutation on {target_id} declined")
                    return MutationOutcome.DECLINED

            self.flash.clear()
            snapshot = copy.deepcopy(self.get_state())
            self.intent.snapshot = snapshot
            self.set_state(apply(self.get_state()))

            try:
                response = await remote()
            except ApiError as e:
                if not self.guard.alive:
                    return MutationOutcome.DISCARDED
                self.set_state(snapshot)
                logger.warning(f"Mutation on {target_id} rolled back: {e}")
                if isinstance(e, AuthError):
                    raise
                self.flash.error(e.user_message or failure_message)
                return MutationOutcome.ROLLED_BACK
            except Exception:
                if self.guard.alive:
                    self.set_state(snapshot)
                raise

            if not self.guard.alive:
                return MutationOutcome.DISCARDED
            if reconcile is not None:
                self.set_state(reconcile(self.get_state(), response))
            message = success_message(response) if callable(success_message) else success_message
            if message:
                self.flash.success(message)
            return MutationOutcome.APPLIED
        finally:
            self.intent = None
