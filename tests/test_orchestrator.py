"""
Integration tests for the page flows.

Flows run against the in-memory record store; audit events are written to
an in-memory audit table so tests can assert on them.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from src.audit import AuditLogger
from src.models.studio import ClientForm, ProjectForm
from src.orchestrator import (
    ClientDashboardFlow,
    ClientPageState,
    DashboardError,
    FormValidationError,
    OverviewFlow,
    OverviewState,
    RequestSequencer,
    create_app_components,
)
from src.services.export import InvoicePdfExporter
from src.services.storage import InMemoryRecordStore, NotFoundError, StorageError


def run(coro):
    return asyncio.run(coro)


class FailingStore(InMemoryRecordStore):
    """Fails every write to the given table."""

    def __init__(self, table):
        super().__init__()
        self._failing = table

    async def insert(self, table, record):
        if table == self._failing:
            raise StorageError("insert rejected")
        return await super().insert(table, record)

    async def update(self, table, record_id, fields):
        if table == self._failing:
            raise StorageError("update rejected")
        return await super().update(table, record_id, fields)


class GatedStore(InMemoryRecordStore):
    """Holds selects on a given client id until its gate opens."""

    def __init__(self):
        super().__init__()
        self.gates = {}

    async def select(self, table, filters=None, order=None, columns="*"):
        gate = self.gates.get((table, (filters or {}).get("id")))
        if gate is not None:
            await gate.wait()
        return await super().select(table, filters, order, columns)


def audit_types(store):
    return [row["event_type"] for row in store.rows("audit_log")]


def seeded_store(store=None):
    store = store or InMemoryRecordStore()
    store.seed("clients", [
        {"id": 1, "name": "Acme Weddings", "email": "hi@acme.in", "created_at": "2024-01-01T00:00:00+00:00"},
        {"id": 2, "name": "Blue Lotus", "created_at": "2024-02-01T00:00:00+00:00"},
    ])
    store.seed("projects", [
        {"id": 10, "client_id": 1, "name": "Film", "cost": "10000", "advance": "0",
         "payment_status": "paid", "work_status": "delivered",
         "created_at": "2024-01-05T00:00:00+00:00"},
        {"id": 11, "client_id": 1, "name": "Reel", "cost": "4000", "advance": "1000",
         "payment_status": "partial", "work_status": "editing", "deadline": "2099-01-01",
         "created_at": "2024-01-06T00:00:00+00:00"},
        {"id": 12, "client_id": 2, "name": "Podcast", "cost": "2000", "advance": "0",
         "payment_status": "unpaid", "work_status": "not_started",
         "created_at": "2024-02-02T00:00:00+00:00"},
    ])
    return store


class TestRequestSequencer:

    def test_only_newest_ticket_is_latest(self):
        seq = RequestSequencer()
        first = seq.next()
        second = seq.next()
        assert seq.is_latest(second)
        assert not seq.is_latest(first)
        assert seq.latest == 2


class TestOverviewFlow:
    """Tests for the overview page flow."""

    def test_load_clients_newest_first_with_totals(self):
        flow = OverviewFlow(seeded_store())
        state = run(flow.load(OverviewState()))

        assert [c.name for c in state.clients] == ["Blue Lotus", "Acme Weddings"]
        assert set(state.projects[0]) == {"client_id", "cost", "advance", "payment_status"}
        assert state.totals.total == Decimal("16000")
        assert state.totals.received == Decimal("11000")
        assert state.totals.pending == Decimal("5000")
        assert state.stats[1].projects == 2

    def test_search_narrows_clients_and_bars(self):
        flow = OverviewFlow(seeded_store())
        state = run(flow.load(OverviewState())).with_search("acme")

        assert [c.id for c in state.filtered_clients] == [1]
        assert [b.client.id for b in state.revenue_bars] == [1]
        assert state.revenue_bars[0].total_width_pct == 100.0
        # Totals are studio-wide regardless of the search box
        assert state.totals.total == Decimal("16000")

    def test_stats_for_client_without_projects(self):
        store = seeded_store()
        store.seed("clients", [{"id": 3, "name": "New"}])
        state = run(OverviewFlow(store).load(OverviewState()))
        new = next(c for c in state.clients if c.id == 3)
        assert state.stats_for(new).projects == 0

    def test_create_client(self):
        store = seeded_store()
        flow = OverviewFlow(store, audit_logger=AuditLogger(store, "audit_log"))
        state = run(flow.load(OverviewState()))

        client, state = run(flow.create_client(state, ClientForm(name="Cafe Mocha")))

        assert client.id is not None
        assert state.clients[0].name == "Cafe Mocha"
        assert len(store.rows("clients")) == 3
        assert audit_types(store) == ["client_created"]

    def test_create_client_rejects_blank_name(self):
        store = seeded_store()
        flow = OverviewFlow(store, audit_logger=AuditLogger(store, "audit_log"))

        with pytest.raises(FormValidationError) as exc_info:
            run(flow.create_client(OverviewState(), ClientForm(name=" ")))

        assert exc_info.value.result.has_errors
        assert len(store.rows("clients")) == 2
        assert audit_types(store) == ["validation_failed"]

    def test_store_error_is_audited_and_raised(self):
        store = seeded_store(FailingStore("clients"))
        flow = OverviewFlow(store, audit_logger=AuditLogger(store, "audit_log"))
        state = run(flow.load(OverviewState()))

        with pytest.raises(StorageError):
            run(flow.create_client(state, ClientForm(name="Cafe Mocha")))

        assert len(state.clients) == 2
        assert audit_types(store) == ["store_error"]


class TestClientDashboardFlow:
    """Tests for the client dashboard flow."""

    def setup_method(self):
        self.store = seeded_store()
        self.flow = ClientDashboardFlow(
            self.store,
            audit_logger=AuditLogger(self.store, "audit_log"),
            exporter=InvoicePdfExporter(studio_name="Test Studio", currency_symbol="Rs."),
        )

    def load(self, client_id=1):
        return run(self.flow.load(ClientPageState(), client_id))

    def test_load_client_and_projects(self):
        state = self.load()
        assert state.client.name == "Acme Weddings"
        assert [p.name for p in state.projects] == ["Reel", "Film"]
        assert state.totals.received == Decimal("11000")
        assert state.totals.pending == Decimal("3000")

    def test_load_missing_client(self):
        with pytest.raises(NotFoundError):
            self.load(99)

    def test_filters_and_upcoming(self):
        state = self.load().with_filters(work_filter="editing")
        assert [p.id for p in state.filtered_projects] == [11]

        assert [p.id for p in state.upcoming(date(2024, 6, 1))] == [11]

    def test_actions_need_a_loaded_client(self):
        with pytest.raises(DashboardError, match="Client not loaded yet"):
            run(self.flow.save_project(ClientPageState(), ProjectForm(name="X")))

    def test_save_client(self):
        state = self.load()
        form = ClientForm.from_client(state.client).model_copy(update={"phone": "98450 00000"})
        state = run(self.flow.save_client(state, form))
        assert state.client.phone == "98450 00000"
        assert audit_types(self.store) == ["client_updated"]

    def test_delete_client_removes_projects(self):
        run(self.flow.delete_client(self.load()))
        assert [r["id"] for r in self.store.rows("clients")] == [2]
        assert [r["id"] for r in self.store.rows("projects")] == [12]
        assert audit_types(self.store) == ["client_deleted"]

    def test_create_project(self):
        state = self.load()
        form = ProjectForm(name="Teaser", cost="1500", advance="500", payment_status="partial")
        state = run(self.flow.save_project(state, form))

        assert len(state.projects) == 3
        created = next(p for p in state.projects if p.name == "Teaser")
        assert created.client_id == 1
        assert created.advance == Decimal("500")
        assert state.project_form.is_new
        assert state.totals.received == Decimal("11500")
        assert audit_types(self.store) == ["project_created"]

    def test_edit_project(self):
        state = self.load()
        reel = next(p for p in state.projects if p.id == 11)
        state = state.editing(reel)
        assert state.project_form.id == 11

        form = state.project_form.model_copy(update={"payment_status": "paid"})
        state = run(self.flow.save_project(state, form))

        reel = next(p for p in state.projects if p.id == 11)
        assert reel.payment_status.value == "paid"
        assert len(state.projects) == 2
        assert state.totals.pending == Decimal("0")
        assert audit_types(self.store) == ["project_updated"]

    def test_invalid_project_never_reaches_store(self):
        state = self.load()
        form = ProjectForm(name="Teaser", cost="100", advance="500")

        with pytest.raises(FormValidationError) as exc_info:
            run(self.flow.save_project(state, form))

        assert "cannot exceed" in str(exc_info.value)
        assert len(self.store.rows("projects")) == 3
        assert audit_types(self.store) == ["validation_failed"]

    def test_delete_project_being_edited_resets_form(self):
        state = self.load()
        reel = next(p for p in state.projects if p.id == 11)
        state = run(self.flow.delete_project(state.editing(reel), reel))

        assert [p.id for p in state.projects] == [10]
        assert state.project_form.is_new
        assert audit_types(self.store) == ["project_deleted"]

    def test_delete_other_project_keeps_form(self):
        state = self.load()
        projects = {p.id: p for p in state.projects}
        state = run(self.flow.delete_project(state.editing(projects[11]), projects[10]))
        assert state.project_form.id == 11

    def test_export_invoice(self):
        filename, pdf = run(self.flow.export_invoice(self.load()))
        assert filename == "acme_weddings_invoice.pdf"
        assert pdf.startswith(b"%PDF")
        assert audit_types(self.store) == ["invoice_exported"]

    def test_stale_load_is_discarded(self):
        store = seeded_store(GatedStore())
        audit_store = InMemoryRecordStore()
        flow = ClientDashboardFlow(store, audit_logger=AuditLogger(audit_store, "audit_log"))
        gate = asyncio.Event()
        store.gates[("clients", 1)] = gate

        async def scenario():
            slow = asyncio.create_task(flow.load(ClientPageState(), 1))
            await asyncio.sleep(0)
            fast = await flow.load(ClientPageState(), 2)
            gate.set()
            return fast, await slow

        fast, slow = run(scenario())
        assert fast.client.id == 2
        assert slow is None
        assert audit_types(audit_store) == ["stale_response_discarded"]

    def test_failed_project_update_leaves_state(self):
        store = seeded_store(FailingStore("projects"))
        flow = ClientDashboardFlow(store, audit_logger=AuditLogger(store, "audit_log"))
        state = run(flow.load(ClientPageState(), 1))
        reel = next(p for p in state.projects if p.id == 11)
        editing = state.editing(reel)

        with pytest.raises(StorageError):
            run(flow.save_project(editing, editing.project_form))

        assert editing.project_form.id == 11
        assert audit_types(store) == ["store_error"]


class TestCreateAppComponents:

    def test_offline_components(self):
        overview, client, session_provider = create_app_components(use_storage=False)
        assert isinstance(overview, OverviewFlow)
        assert isinstance(client, ClientDashboardFlow)
        assert session_provider is None
