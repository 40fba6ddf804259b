"""Tests for the client/project filters and deadline helpers."""

from datetime import date, datetime

from src.models.studio import ALL, Client, PaymentStatus, Project, WorkStatus
from src.queries import (
    filter_clients,
    filter_projects,
    format_date,
    is_overdue,
    parse_deadline,
    upcoming_deadlines,
)


CLIENTS = [
    Client(id=1, name="Acme Weddings", email="hello@acme.in", phone="98450 11111"),
    Client(id=2, name="Blue Lotus Films", email=None, phone="080 2222"),
    Client(id=3, name="Cafe Mocha", email="team@mocha.co", phone=None),
]


def project(pid, work="not_started", payment="unpaid", deadline=None):
    return Project(
        id=pid,
        client_id=1,
        name=f"P{pid}",
        work_status=work,
        payment_status=payment,
        deadline=deadline,
    )


class TestFilterClients:
    """Tests for the client search box."""

    def test_blank_query_returns_input_unchanged(self):
        assert filter_clients(CLIENTS, "") is CLIENTS
        assert filter_clients(CLIENTS, "   ") is CLIENTS

    def test_matches_name_case_insensitively(self):
        assert [c.id for c in filter_clients(CLIENTS, "LOTUS")] == [2]

    def test_matches_email_and_phone(self):
        assert [c.id for c in filter_clients(CLIENTS, "mocha.co")] == [3]
        assert [c.id for c in filter_clients(CLIENTS, "2222")] == [2]

    def test_missing_fields_do_not_match_or_raise(self):
        assert filter_clients(CLIENTS, "none") == []

    def test_preserves_order(self):
        assert [c.id for c in filter_clients(CLIENTS, "e")] == [1, 2, 3]

    def test_query_is_case_insensitive_substring(self):
        rows = [{"name": "Acme"}, {"name": "Bexo"}]
        assert filter_clients(rows, "AC") == [{"name": "Acme"}]

    def test_works_on_raw_rows(self):
        rows = [{"name": "Acme"}, {"name": "Zen", "email": "z@acme.in"}]
        assert filter_clients(rows, "acme") == rows


class TestFilterProjects:
    """Tests for the work/payment status filters."""

    PROJECTS = [
        project(1, "editing", "unpaid"),
        project(2, "delivered", "paid"),
        project(3, "editing", "paid"),
    ]

    def test_all_all_returns_everything(self):
        assert filter_projects(self.PROJECTS, ALL, ALL) == self.PROJECTS

    def test_work_filter(self):
        result = filter_projects(self.PROJECTS, "editing", ALL)
        assert [p.id for p in result] == [1, 3]

    def test_both_filters_must_match(self):
        result = filter_projects(self.PROJECTS, WorkStatus.EDITING, PaymentStatus.PAID)
        assert [p.id for p in result] == [3]

    def test_no_match(self):
        assert filter_projects(self.PROJECTS, "archived", ALL) == []


class TestUpcomingDeadlines:
    """Tests for the next-due list."""

    NOW = date(2024, 6, 10)

    def test_sorted_soonest_first_and_limited(self):
        projects = [
            project(1, deadline=date(2024, 7, 1)),
            project(2, deadline=date(2024, 6, 12)),
            project(3, deadline=date(2024, 6, 20)),
            project(4, deadline=date(2024, 6, 11)),
        ]
        result = upcoming_deadlines(projects, self.NOW, limit=3)
        assert [p.id for p in result] == [4, 2, 3]

    def test_skips_paid_and_past_and_undated(self):
        projects = [
            project(1, payment="paid", deadline=date(2024, 6, 11)),
            project(2, deadline=date(2024, 6, 9)),
            project(3, deadline=None),
            project(4, payment="partial", deadline=date(2024, 6, 15)),
        ]
        assert [p.id for p in upcoming_deadlines(projects, self.NOW)] == [4]

    def test_due_today_counts_as_upcoming(self):
        projects = [project(1, deadline=self.NOW)]
        assert len(upcoming_deadlines(projects, datetime(2024, 6, 10, 18, 30))) == 1

    def test_unparseable_deadline_is_left_out(self):
        rows = [
            {"deadline": "soon", "payment_status": "unpaid"},
            {"deadline": "2024-06-30", "payment_status": "unpaid"},
        ]
        assert upcoming_deadlines(rows, self.NOW) == [rows[1]]

    def test_empty(self):
        assert upcoming_deadlines([], self.NOW) == []

    def test_default_limit_is_three(self):
        projects = [project(i, deadline=date(2024, 7, i)) for i in range(1, 6)]
        assert [p.id for p in upcoming_deadlines(projects, self.NOW)] == [1, 2, 3]


class TestDateHelpers:
    """Tests for deadline parsing and display."""

    def test_parse_deadline_formats(self):
        assert parse_deadline("2024-06-10") == date(2024, 6, 10)
        assert parse_deadline("2024-06-10T23:00:00Z") == date(2024, 6, 10)
        assert parse_deadline(datetime(2024, 6, 10, 5)) == date(2024, 6, 10)
        assert parse_deadline("10/06/2024") is None
        assert parse_deadline("") is None
        assert parse_deadline(42) is None

    def test_format_date(self):
        assert format_date(None) == "-"
        assert format_date("") == "-"
        assert format_date(date(2024, 1, 5)) == "2024-01-05"
        assert format_date("not a date") == "not a date"


class TestIsOverdue:
    """Tests for flagging late, unpaid projects."""

    TODAY = date(2024, 6, 10)

    def test_past_deadline_unpaid(self):
        assert is_overdue(project(1, deadline=date(2024, 6, 9)), self.TODAY)
        assert is_overdue(project(2, payment="partial", deadline=date(2024, 1, 1)), self.TODAY)

    def test_paid_is_never_overdue(self):
        assert not is_overdue(project(1, payment="paid", deadline=date(2024, 6, 9)), self.TODAY)

    def test_due_today_or_later_is_not_overdue(self):
        assert not is_overdue(project(1, deadline=self.TODAY), self.TODAY)
        assert not is_overdue(project(2, deadline=date(2024, 7, 1)), self.TODAY)

    def test_missing_or_unparseable_deadline(self):
        assert not is_overdue(project(1), self.TODAY)
        assert not is_overdue({"deadline": "soon", "payment_status": "unpaid"}, self.TODAY)

    def test_accepts_datetime_now(self):
        row = {"deadline": "2024-06-09", "payment_status": "unpaid"}
        assert is_overdue(row, datetime(2024, 6, 10, 0, 5))
