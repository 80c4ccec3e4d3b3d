"""Interaction controller — the state behind the single-page UI."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Awaitable, Callable

from originpoint.client import GroundedQueryClient
from originpoint.errors import (
    ControllerStateError,
    OriginPointError,
    ValidationError,
    require_text,
)
from originpoint.models.module import (
    ActiveModule,
    ChallengeSession,
    ControllerPhase,
    ResultKind,
)
from originpoint.models.result import AnalysisResult, Conflict, VisualizationData
from originpoint.orchestrator.dispatcher import DispatchOutcome, Dispatcher
from originpoint.prompts import CHALLENGE_NOTICE

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "Request intercepted or failed. Verify link integrity."

Listener = Callable[["InteractionController"], Awaitable[None]]


class InteractionController:
    """Holds the active module and the one current result.

    At most one request is in flight. Submissions made while loading are
    ignored, never queued. A result, a conflict batch and a visualization
    are mutually exclusive; storing one clears the others.
    """

    def __init__(self, client: GroundedQueryClient, dispatcher: Dispatcher | None = None) -> None:
        self.client = client
        self.dispatcher = dispatcher or Dispatcher(client)
        self.active_module = ActiveModule.SEARCH
        self.query = ""
        self.loading = False
        self.result: AnalysisResult | None = None
        self.conflicts: list[Conflict] = []
        self.visualization: VisualizationData | None = None
        self.summary = ""
        self.challenge: ChallengeSession | None = None
        self.notice: str | None = None
        self._phase = ControllerPhase.IDLE
        self._listeners: list[Listener] = []

    # --- Observers ---

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener(self)

    # --- Derived state ---

    @property
    def phase(self) -> ControllerPhase:
        return self._phase

    @property
    def result_kind(self) -> ResultKind:
        if self.result is not None:
            return ResultKind.TEXT
        if self.conflicts:
            return ResultKind.CONFLICTS
        if self.visualization is not None:
            return ResultKind.VISUALIZATION
        return ResultKind.EMPTY

    # --- Module selection ---

    async def select_module(self, module: ActiveModule) -> bool:
        """Switch modules, dropping whatever result was on screen."""
        if self.loading:
            logger.info("Ignoring module change to %s while loading", module.value)
            return False
        self.active_module = module
        self.challenge = None
        self.notice = None
        self._clear_results()
        self._phase = ControllerPhase.IDLE
        await self._notify()
        return True

    # --- Query submission ---

    async def submit(self, query: str) -> bool:
        """Dispatch ``query`` to the active module.

        Returns False when the submission was ignored or rejected.
        """
        if self.loading:
            logger.info("Ignoring submit while a request is in flight")
            return False
        if self._phase is ControllerPhase.CHALLENGING:
            raise ControllerStateError("Finish or cancel the open challenge first")

        self.query = query
        try:
            query = require_text(query)
        except ValidationError as exc:
            self.notice = str(exc)
            await self._notify()
            return False

        return await self._run(self.dispatcher.dispatch(self.active_module, query))

    async def submit_document(self, image: bytes, mime_type: str = "image/jpeg") -> bool:
        """Dispatch an uploaded record image to the scan module."""
        if self.loading:
            logger.info("Ignoring document while a request is in flight")
            return False
        if self.active_module is not ActiveModule.SCAN:
            raise ControllerStateError("Documents can only be submitted in the scan module")
        if not image:
            self.notice = "document must not be empty"
            await self._notify()
            return False

        return await self._run(self.dispatcher.dispatch_document(image, mime_type))

    async def _run(self, dispatch: Awaitable[DispatchOutcome]) -> bool:
        self.loading = True
        self.notice = None
        self._clear_results()
        self._phase = ControllerPhase.LOADING

        try:
            await self._notify()
            outcome = await dispatch
        except ValidationError as exc:
            self.notice = str(exc)
            self._phase = ControllerPhase.IDLE
            return False
        except OriginPointError as exc:
            logger.error("Dispatch for %s failed: %s", self.active_module.value, exc)
            self._clear_results()
            self.notice = FAILURE_NOTICE
            self._phase = ControllerPhase.IDLE
            return False
        except BaseException:
            # A failing listener leaves the dispatch coroutine unstarted
            close = getattr(dispatch, "close", None)
            if close is not None:
                close()
            self._clear_results()
            self._phase = ControllerPhase.IDLE
            raise
        else:
            self._store(outcome)
            self._phase = ControllerPhase.RESULT_READY
            return True
        finally:
            self.loading = False
            await self._notify()

    # --- Challenge flow ---

    async def select_conflict(self, conflict_id: str) -> ChallengeSession:
        """Open a challenge against one conflict of the current batch."""
        if self.loading:
            raise ControllerStateError("A request is in flight")
        conflict = next((c for c in self.conflicts if c.id == conflict_id), None)
        if conflict is None:
            raise ControllerStateError(f"No current conflict with id {conflict_id!r}")

        self.challenge = ChallengeSession(
            target_description=self.client.profile.challenge_target(conflict)
        )
        self.notice = None
        self._phase = ControllerPhase.CHALLENGING
        await self._notify()
        return self.challenge

    async def submit_evidence(self, evidence: str) -> bool:
        """Re-analyze the challenged conflict against the user's evidence."""
        if self.loading:
            logger.info("Ignoring evidence while a request is in flight")
            return False
        if self.challenge is None:
            raise ControllerStateError("No challenge is open")

        self.challenge.evidence_text = evidence
        try:
            evidence = require_text(evidence, "evidence")
        except ValidationError as exc:
            self.notice = str(exc)
            await self._notify()
            return False

        session = self.challenge
        self.loading = True
        self.notice = None
        self._phase = ControllerPhase.LOADING

        try:
            await self._notify()
            text = await self.client.submit_challenge(session.target_description, evidence)
        except OriginPointError as exc:
            logger.error("Challenge re-analysis failed: %s", exc)
            self.notice = FAILURE_NOTICE
            self._close_challenge()
            return False
        except BaseException:
            self._close_challenge()
            raise
        else:
            self._clear_results()
            self.result = AnalysisResult(
                text=text,
                sources=[],
                is_deep_reasoning=True,
                integrity_tag=self.client.profile.integrity_tag(),
            )
            self.summary = CHALLENGE_NOTICE
            self.challenge = None
            self._phase = ControllerPhase.RESULT_READY
            logger.info("Challenge re-analysis stored (%d chars)", len(text))
            return True
        finally:
            self.loading = False
            await self._notify()

    async def cancel_challenge(self) -> None:
        if self.loading:
            return
        self._close_challenge()
        await self._notify()

    def _close_challenge(self) -> None:
        self.challenge = None
        self._phase = (
            ControllerPhase.IDLE
            if self.result_kind is ResultKind.EMPTY
            else ControllerPhase.RESULT_READY
        )

    # --- State helpers ---

    def _clear_results(self) -> None:
        self.result = None
        self.conflicts = []
        self.visualization = None
        self.summary = ""

    def _store(self, outcome: DispatchOutcome) -> None:
        self._clear_results()
        if outcome.kind is ResultKind.CONFLICTS:
            self.conflicts = list(outcome.conflicts)
        elif outcome.kind is ResultKind.VISUALIZATION:
            self.visualization = outcome.visualization
        else:
            self.result = outcome.result
        self.summary = outcome.summary

    def snapshot(self) -> dict:
        """Render-ready view of the current state."""
        return {
            "module": self.active_module.value,
            "phase": self.phase.value,
            "loading": self.loading,
            "query": self.query,
            "result_kind": self.result_kind.value,
            "result": asdict(self.result) if self.result is not None else None,
            "conflicts": [asdict(c) for c in self.conflicts],
            "visualization": (
                asdict(self.visualization) if self.visualization is not None else None
            ),
            "summary": self.summary,
            "challenge": asdict(self.challenge) if self.challenge is not None else None,
            "notice": self.notice,
        }
