"""
Main Orchestrator for the Studio Dashboard

This module ties together the record store, the pure derivations and the
audit trail, and defines the two page flows:
1. Overview (all clients, studio totals, revenue by client)
2. Client dashboard (one client, their projects, filters, invoice export)

DESIGN DECISION: Page state is immutable.
Each flow method takes the current state and returns a new one; derived
views (filtered lists, totals, upcoming deadlines) are properties computed
from that state, never stored alongside it. The UI keeps exactly one state
value per page and replaces it wholesale.

DESIGN DECISION: Fetches are sequence-tagged.
Each load takes a ticket from a monotonic counter. When a response arrives
whose ticket is older than the newest one issued, it is discarded and the
load returns None, so a slow earlier fetch can never overwrite a newer one.
"""

import asyncio
from datetime import date
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict

from src.audit import AuditLogger, configure_logging, create_correlation_id
from src.config import get_settings
from src.finance import aggregate, client_stats, revenue_bars
from src.models.studio import (
    ALL,
    Client,
    ClientForm,
    ClientStats,
    FinancialSummary,
    Project,
    ProjectForm,
    RevenueBar,
    ValidationResult,
)
from src.queries import filter_clients, filter_projects, upcoming_deadlines
from src.services.auth import SessionProvider
from src.services.export import InvoicePdfExporter, invoice_filename
from src.services.storage import (
    InMemoryRecordStore,
    NotFoundError,
    Order,
    RecordStoreInterface,
    StorageError,
    SupabaseClient,
    SupabaseRecordStore,
)
from src.validation import FormValidator


logger = structlog.get_logger(__name__)

# The overview only needs enough of each project to compute money figures.
OVERVIEW_PROJECT_COLUMNS = "client_id, cost, advance, payment_status"

NEWEST_FIRST = Order("created_at", descending=True)


class DashboardError(Exception):
    """A dashboard action could not be carried out."""
    pass


class FormValidationError(DashboardError):
    """A form was rejected before reaching the store."""

    def __init__(self, result: ValidationResult, message: str):
        super().__init__(message)
        self.result = result


class RequestSequencer:
    """Monotonic tickets for telling the newest fetch apart from stale ones."""

    def __init__(self):
        self._latest = 0

    def next(self) -> int:
        self._latest += 1
        return self._latest

    @property
    def latest(self) -> int:
        return self._latest

    def is_latest(self, ticket: int) -> bool:
        return ticket == self._latest


# =============================================================================
# PAGE STATE
# =============================================================================

class OverviewState(BaseModel):
    """Everything the overview page renders from."""
    model_config = ConfigDict(frozen=True)

    clients: tuple[Client, ...] = ()
    projects: tuple[dict, ...] = ()
    search: str = ""

    def with_search(self, search: str) -> "OverviewState":
        return self.model_copy(update={"search": search})

    @property
    def filtered_clients(self) -> list[Client]:
        return list(filter_clients(self.clients, self.search))

    @property
    def stats(self) -> dict:
        return client_stats(self.projects)

    def stats_for(self, client: Client) -> ClientStats:
        return self.stats.get(client.id, ClientStats())

    @property
    def totals(self) -> FinancialSummary:
        return aggregate(self.projects)

    @property
    def revenue_bars(self) -> list[RevenueBar]:
        return revenue_bars(self.filtered_clients, self.stats)


class ClientPageState(BaseModel):
    """Everything the client dashboard renders from."""
    model_config = ConfigDict(frozen=True)

    client: Optional[Client] = None
    projects: tuple[Project, ...] = ()
    work_filter: str = ALL
    payment_filter: str = ALL
    project_form: ProjectForm = ProjectForm()

    def with_filters(
        self,
        work_filter: Optional[str] = None,
        payment_filter: Optional[str] = None,
    ) -> "ClientPageState":
        update = {}
        if work_filter is not None:
            update["work_filter"] = work_filter
        if payment_filter is not None:
            update["payment_filter"] = payment_filter
        return self.model_copy(update=update)

    def editing(self, project: Project) -> "ClientPageState":
        """Load a project into the form for editing."""
        return self.model_copy(update={"project_form": ProjectForm.from_project(project)})

    def with_form(self, form: ProjectForm) -> "ClientPageState":
        return self.model_copy(update={"project_form": form})

    def reset_form(self) -> "ClientPageState":
        return self.model_copy(update={"project_form": ProjectForm()})

    @property
    def totals(self) -> FinancialSummary:
        return aggregate(self.projects)

    @property
    def filtered_projects(self) -> list[Project]:
        return filter_projects(self.projects, self.work_filter, self.payment_filter)

    def upcoming(self, now: date, limit: int = 3) -> list[Project]:
        return upcoming_deadlines(self.projects, now, limit)


# =============================================================================
# FLOWS
# =============================================================================

class _BaseFlow:
    """Shared store access with error auditing."""

    def __init__(
        self,
        store: RecordStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[FormValidator] = None,
        clients_table: str = "clients",
        projects_table: str = "projects",
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or FormValidator()
        self._clients_table = clients_table
        self._projects_table = projects_table
        self._sequencer = RequestSequencer()

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    async def _guard(
        self,
        operation: str,
        table: str,
        coro,
        correlation_id: Optional[UUID] = None,
    ):
        """Await a store call, auditing and re-raising any StorageError."""
        try:
            return await coro
        except StorageError as e:
            await self._audit_logger.log_store_error(
                operation=operation,
                table=table,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    async def _check(
        self,
        result: ValidationResult,
        correlation_id: Optional[UUID],
    ) -> None:
        """Raise FormValidationError if the result has errors."""
        if result.is_valid:
            return
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
            if i.severity == "error"
        ]
        await self._audit_logger.log_validation_failed(
            form=result.form,
            issues=issues,
            correlation_id=correlation_id,
        )
        raise FormValidationError(
            result,
            self._validator.get_user_friendly_summary(result),
        )

    async def _is_stale(self, page: str, ticket: int) -> bool:
        if self._sequencer.is_latest(ticket):
            return False
        await self._audit_logger.log_stale_response(
            page, ticket, self._sequencer.latest,
        )
        return True


class OverviewFlow(_BaseFlow):
    """
    Orchestrates the studio overview page.

    Flow:
    1. Load all clients (newest first) and a money projection of all projects
    2. Derive per-client stats, studio totals and revenue bars from state
    3. Create new clients from the overview form
    """

    async def load(self, state: OverviewState) -> Optional[OverviewState]:
        """
        Fetch clients and projects together.

        Returns the refreshed state, or None if a newer load superseded
        this one while it was in flight.

        Raises:
            StorageError: If either fetch fails; the caller keeps its state
        """
        ticket = self._sequencer.next()

        clients_rows, project_rows = await asyncio.gather(
            self._guard(
                "select", self._clients_table,
                self._store.select(self._clients_table, order=NEWEST_FIRST),
            ),
            self._guard(
                "select", self._projects_table,
                self._store.select(
                    self._projects_table,
                    columns=OVERVIEW_PROJECT_COLUMNS,
                ),
            ),
        )

        if await self._is_stale("overview", ticket):
            return None

        return state.model_copy(update={
            "clients": tuple(Client(**row) for row in clients_rows),
            "projects": tuple(project_rows),
        })

    async def create_client(
        self,
        state: OverviewState,
        form: ClientForm,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Client, OverviewState]:
        """
        Validate and insert a new client.

        Returns the stored client and the state with it prepended
        (the list is newest first).
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._check(self._validator.validate_client(form), correlation_id)

        row = await self._guard(
            "insert", self._clients_table,
            self._store.insert(self._clients_table, form.to_payload()),
            correlation_id,
        )
        client = Client(**row)

        await self._audit_logger.log_client_saved(
            client_id=client.id,
            name=client.name,
            created=True,
            correlation_id=correlation_id,
        )
        return client, state.model_copy(update={"clients": (client,) + state.clients})


class ClientDashboardFlow(_BaseFlow):
    """
    Orchestrates one client's dashboard.

    Flow:
    1. Load the client and their projects (newest first)
    2. Edit or delete the client
    3. Create, edit and delete projects through a single form
    4. Export the invoice PDF
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[FormValidator] = None,
        exporter: Optional[InvoicePdfExporter] = None,
        clients_table: str = "clients",
        projects_table: str = "projects",
    ):
        super().__init__(
            store,
            audit_logger=audit_logger,
            validator=validator,
            clients_table=clients_table,
            projects_table=projects_table,
        )
        self._exporter = exporter

    def _require_client(self, state: ClientPageState) -> Client:
        if state.client is None:
            raise DashboardError("Client not loaded yet")
        return state.client

    async def _fetch_projects(self, client_id: int) -> tuple[Project, ...]:
        rows = await self._guard(
            "select", self._projects_table,
            self._store.select(
                self._projects_table,
                filters={"client_id": client_id},
                order=NEWEST_FIRST,
            ),
        )
        return tuple(Project(**row) for row in rows)

    async def load(
        self,
        state: ClientPageState,
        client_id: int,
    ) -> Optional[ClientPageState]:
        """
        Fetch a client and their projects.

        Returns None if a newer load superseded this one.

        Raises:
            NotFoundError: If no client has this id
            StorageError: If either fetch fails
        """
        ticket = self._sequencer.next()

        client_rows, projects = await asyncio.gather(
            self._guard(
                "select", self._clients_table,
                self._store.select(self._clients_table, filters={"id": client_id}),
            ),
            self._fetch_projects(client_id),
        )

        if await self._is_stale("client", ticket):
            return None
        if not client_rows:
            raise NotFoundError(f"Client {client_id} not found")

        return state.model_copy(update={
            "client": Client(**client_rows[0]),
            "projects": projects,
        })

    async def reload_projects(self, state: ClientPageState) -> Optional[ClientPageState]:
        """Refetch the current client's projects; None if superseded."""
        client = self._require_client(state)
        ticket = self._sequencer.next()
        projects = await self._fetch_projects(client.id)
        if await self._is_stale("projects", ticket):
            return None
        return state.model_copy(update={"projects": projects})

    async def save_client(
        self,
        state: ClientPageState,
        form: ClientForm,
        correlation_id: Optional[UUID] = None,
    ) -> ClientPageState:
        """Validate and store edits to the loaded client."""
        correlation_id = correlation_id or create_correlation_id()
        client = self._require_client(state)
        await self._check(self._validator.validate_client(form), correlation_id)

        row = await self._guard(
            "update", self._clients_table,
            self._store.update(self._clients_table, client.id, form.to_payload()),
            correlation_id,
        )
        updated = Client(**row)

        await self._audit_logger.log_client_saved(
            client_id=updated.id,
            name=updated.name,
            created=False,
            correlation_id=correlation_id,
        )
        return state.model_copy(update={"client": updated})

    async def delete_client(
        self,
        state: ClientPageState,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete the loaded client.

        Their projects are removed by the store's cascading delete.
        """
        correlation_id = correlation_id or create_correlation_id()
        client = self._require_client(state)

        await self._guard(
            "delete", self._clients_table,
            self._store.delete(self._clients_table, client.id),
            correlation_id,
        )
        await self._audit_logger.log_client_deleted(client.id, correlation_id)

    async def save_project(
        self,
        state: ClientPageState,
        form: ProjectForm,
        correlation_id: Optional[UUID] = None,
        today: Optional[date] = None,
    ) -> ClientPageState:
        """
        Create or update a project from the form, then reload the list.

        A form without an id creates a project for the loaded client.
        On success the form is reset.

        Raises:
            DashboardError: If no client is loaded
            FormValidationError: If the form has errors (nothing is saved)
            StorageError: If the store call fails
        """
        correlation_id = correlation_id or create_correlation_id()
        client = self._require_client(state)
        await self._check(
            self._validator.validate_project(form, today=today),
            correlation_id,
        )

        payload = form.to_payload()
        if form.is_new:
            row = await self._guard(
                "insert", self._projects_table,
                self._store.insert(
                    self._projects_table,
                    {**payload, "client_id": client.id},
                ),
                correlation_id,
            )
            project_id = row.get("id")
        else:
            await self._guard(
                "update", self._projects_table,
                self._store.update(self._projects_table, form.id, payload),
                correlation_id,
            )
            project_id = form.id

        await self._audit_logger.log_project_saved(
            project_id=project_id,
            client_id=client.id,
            name=payload["name"],
            created=form.is_new,
            correlation_id=correlation_id,
        )

        projects = await self._fetch_projects(client.id)
        return state.model_copy(update={
            "projects": projects,
            "project_form": ProjectForm(),
        })

    async def delete_project(
        self,
        state: ClientPageState,
        project: Project,
        correlation_id: Optional[UUID] = None,
    ) -> ClientPageState:
        """Delete a project, reload the list, and clear the form if it was being edited."""
        correlation_id = correlation_id or create_correlation_id()
        client = self._require_client(state)

        await self._guard(
            "delete", self._projects_table,
            self._store.delete(self._projects_table, project.id),
            correlation_id,
        )
        await self._audit_logger.log_project_deleted(
            project.id, client.id, correlation_id,
        )

        projects = await self._fetch_projects(client.id)
        new_state = state.model_copy(update={"projects": projects})
        if state.project_form.id == project.id:
            new_state = new_state.reset_form()
        return new_state

    async def export_invoice(self, state: ClientPageState) -> tuple[str, bytes]:
        """
        Render the loaded client's invoice.

        Returns:
            (filename, pdf_bytes)
        """
        client = self._require_client(state)
        exporter = self._exporter or InvoicePdfExporter()

        pdf = exporter.render(client, state.projects)
        filename = invoice_filename(client.name)

        await self._audit_logger.log_invoice_exported(
            client_id=client.id,
            filename=filename,
            project_count=len(state.projects),
            total=str(state.totals.total),
        )
        return filename, pdf


def create_app_components(
    use_storage: bool = True,
) -> tuple[OverviewFlow, ClientDashboardFlow, Optional[SessionProvider]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to Supabase.
                    Set to False (or leave Supabase unconfigured) to run
                    offline against an in-memory store with no login.

    Returns:
        (overview_flow, client_flow, session_provider)
    """
    settings = get_settings()
    session_provider = None
    clients_table, projects_table = "clients", "projects"

    store: RecordStoreInterface
    if use_storage:
        try:
            supabase_settings = settings.supabase
            client = SupabaseClient()
            store = SupabaseRecordStore(client)
            session_provider = SessionProvider(client.auth)
            clients_table = supabase_settings.clients_table
            projects_table = supabase_settings.projects_table
        except Exception as e:
            # Storage not configured - continue offline
            logger.warning("storage_not_configured", error=str(e))
            store = InMemoryRecordStore()
    else:
        store = InMemoryRecordStore()

    app_settings = settings.app
    configure_logging(app_settings.log_level)
    audit_logger = AuditLogger(store, app_settings.audit_table)

    overview_flow = OverviewFlow(
        store,
        audit_logger=audit_logger,
        clients_table=clients_table,
        projects_table=projects_table,
    )
    client_flow = ClientDashboardFlow(
        store,
        audit_logger=audit_logger,
        clients_table=clients_table,
        projects_table=projects_table,
    )

    return overview_flow, client_flow, session_provider
