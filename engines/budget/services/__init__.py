"""
FieldSync Budget Engine — Application Service
===============================================
ProjectBudget owns projects/{id}: the budget ceiling and the
running spend charged by approvals.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from core.commands import OperationOutcome, run_operation
from core.commands.errors import NotFound
from core.ledger_store import PROJECTS, LedgerStore, Write, new_record_id, record_path
from core.primitives import Project
from core.primitives.coercion import decimal_to_str
from core.time import Clock, SystemClock
from engines.budget.commands import RegisterProjectRequest, TopUpBudgetRequest

logger = logging.getLogger("fieldsync.budget")


class ProjectBudget:
    """Owner of project budget records."""

    def __init__(self, store: LedgerStore, clock: Optional[Clock] = None):
        self._store = store
        self._clock = clock or SystemClock()

    @staticmethod
    def path(project_id: str) -> str:
        return record_path(PROJECTS, project_id)

    # ── Reads ─────────────────────────────────────────────────

    def read(self, project_id: str) -> Tuple[Project, int]:
        snapshot = self._store.read_once(self.path(project_id))
        if not snapshot.exists:
            raise NotFound("Project", project_id)
        return Project.from_record(project_id, snapshot.value), snapshot.version

    def get(self, project_id: str) -> Project:
        return self.read(project_id)[0]

    def find(self, project_id: str) -> Optional[Project]:
        try:
            return self.get(project_id)
        except NotFound:
            return None

    def list_projects(self) -> List[Project]:
        snapshot = self._store.read_once(PROJECTS)
        return [
            Project.from_record(project_id, raw)
            for project_id, raw in sorted(snapshot.children().items())
        ]

    # ── Write builders ────────────────────────────────────────

    def spent_write(self, project: Project, expected_version: int) -> Write:
        return Write.update(
            self.path(project.project_id),
            {"spent": decimal_to_str(project.spent)},
            expected_version=expected_version,
        )

    # ── Operations ────────────────────────────────────────────

    def register_project(self, request: RegisterProjectRequest) -> Project:
        project = Project(
            project_id=request.project_id or new_record_id("PRJ"),
            budget=request.budget,
            spent=request.spent,
            name=request.name,
            opening_spent=request.spent,
        )
        self._store.commit([Write.create(self.path(project.project_id), project.to_record())])
        logger.info(
            f"Project registered: {project.project_id} '{project.name}' "
            f"budget={project.budget}"
        )
        return project

    def top_up(self, project_id: str, amount) -> OperationOutcome:
        return run_operation(
            "budget.top_up",
            lambda: self._top_up(TopUpBudgetRequest(project_id, amount)),
            clock=self._clock,
        )

    def _top_up(self, request: TopUpBudgetRequest):
        path = self.path(request.project_id)
        with self._store.locked(path):
            project, version = self.read(request.project_id)
            updated = replace(project, budget=project.budget + request.amount)
            self._store.commit([
                Write.update(
                    path,
                    {"budget": decimal_to_str(updated.budget)},
                    expected_version=version,
                ),
            ])

        message = (
            f"Budget of {project.name} raised by {request.amount} "
            f"({project.budget} → {updated.budget}); {updated.remaining} remaining."
        )
        return message, updated
