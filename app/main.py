"""
Streamlit Frontend for the Studio Dashboard

This is the admin interface the studio owner uses to keep track of
clients, projects and money owed.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every figure on screen is derived from the loaded records
3. Clear error messages in simple language
4. Nothing is deleted without an explicit confirmation
5. No hidden actions

The UI keeps one immutable state value per page in st.session_state and
replaces it with whatever the flow returns.
"""

import asyncio
from datetime import datetime

import streamlit as st

from src.config import get_settings
from src.finance import amounts
from src.models.studio import (
    ALL,
    ClientForm,
    PaymentStatus,
    ProjectForm,
    WorkStatus,
)
from src.orchestrator import (
    ClientDashboardFlow,
    ClientPageState,
    DashboardError,
    FormValidationError,
    OverviewFlow,
    OverviewState,
    create_app_components,
)
from src.queries import format_date, is_overdue
from src.services.auth import AuthError, SessionProvider
from src.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Studio Dashboard",
    page_icon="🎬",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .bar-track {
        background-color: #eceff1;
        border-radius: 6px;
        height: 14px;
        margin: 4px 0 12px 0;
        position: relative;
    }
    .bar-total {
        background-color: #2e7d32;
        border-radius: 6px;
        height: 14px;
        position: absolute;
    }
    .bar-pending {
        background-color: #f9a825;
        border-radius: 6px;
        height: 14px;
        position: absolute;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(value) -> str:
    symbol = get_settings().studio.currency_symbol
    return f"{symbol}{value:,.2f}"


def label(value: str) -> str:
    return value.replace("_", " ").title()


def main():
    """Main application entry point."""
    overview_flow, client_flow, session_provider = get_components()

    if session_provider is not None:
        if session_provider.loading:
            session_provider.load()
        if not session_provider.is_authenticated:
            render_login_page(session_provider, overview_flow)
            return

    studio = get_settings().studio

    # Sidebar navigation
    st.sidebar.title(f"🎬 {studio.name}")
    if session_provider is not None:
        st.sidebar.caption(f"Signed in as {session_provider.display_email}")
    else:
        st.sidebar.warning("Offline mode: changes are kept in memory only")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Overview", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if session_provider is not None and st.sidebar.button("Sign out"):
        email = session_provider.display_email
        try:
            session_provider.sign_out()
            run_async(overview_flow.audit_logger.log_signed_out(email))
        except AuthError as e:
            st.sidebar.error(f"Could not sign out: {e}")
        st.session_state.clear()
        st.rerun()

    # Route to appropriate page
    if page == "⚙️ Settings":
        render_settings_page()
    elif st.session_state.get("client_id") is not None:
        render_client_page(client_flow, overview_flow)
    else:
        render_overview_page(overview_flow)


def render_login_page(session_provider: SessionProvider, overview_flow: OverviewFlow):
    """Render the sign-in form."""
    st.title("🔐 Sign in")
    st.markdown("Sign in with your studio admin account.")

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        try:
            session_provider.sign_in(email, password)
            run_async(overview_flow.audit_logger.log_signed_in(email))
            st.rerun()
        except AuthError as e:
            run_async(overview_flow.audit_logger.log_sign_in_failed(email, str(e)))
            st.error(f"Sign-in failed: {e}")


# =============================================================================
# OVERVIEW
# =============================================================================

def load_overview(overview_flow: OverviewFlow) -> OverviewState:
    state = st.session_state.get("overview_state") or OverviewState()
    if "overview_state" not in st.session_state:
        try:
            refreshed = run_async(overview_flow.load(state))
        except StorageError as e:
            st.error(f"Could not load clients: {e}")
            return state
        if refreshed is not None:
            state = refreshed
        st.session_state.overview_state = state
    return state


def render_overview_page(overview_flow: OverviewFlow):
    """Render the studio overview page."""
    st.title("📊 Overview")

    state = load_overview(overview_flow)

    # Summary cards
    totals = state.totals
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Clients", len(state.clients))
    col2.metric("Projects", len(state.projects))
    col3.metric("Received", money(totals.received))
    col4.metric("Pending", money(totals.pending))
    st.caption(f"Total billed: {money(totals.total)}")

    st.markdown("---")

    search = st.text_input(
        "Search clients",
        value=state.search,
        placeholder="Name, email or phone",
    )
    if search != state.search:
        state = state.with_search(search)
        st.session_state.overview_state = state

    # Revenue by client
    st.subheader("Revenue by client")
    bars = state.revenue_bars
    if not bars:
        st.info("No clients match.")
    for bar in bars:
        st.markdown(
            f"**{bar.client.name}** &nbsp; {money(bar.stats.total)} "
            f"({money(bar.stats.pending)} pending)"
        )
        st.markdown(f"""
        <div class="bar-track">
            <div class="bar-total" style="width: {bar.total_width_pct:.1f}%"></div>
            <div class="bar-pending" style="width: {bar.pending_width_pct:.1f}%"></div>
        </div>
        """, unsafe_allow_html=True)

    # Client list
    st.subheader("Clients")
    for client in state.filtered_clients:
        stats = state.stats_for(client)
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.markdown(f"**{client.name}**  \n{client.email or '-'}")
        col2.markdown(f"{stats.projects} project(s)")
        col3.markdown(f"{money(stats.received)} / {money(stats.total)}")
        if col4.button("Open", key=f"open_{client.id}"):
            st.session_state.client_id = client.id
            st.session_state.pop("client_state", None)
            st.rerun()

    # Add client
    st.markdown("---")
    with st.expander("➕ Add client"):
        with st.form("new_client", clear_on_submit=True):
            form = client_form_fields(ClientForm())
            submitted = st.form_submit_button("Create client", type="primary")

        if submitted:
            try:
                client, state = run_async(overview_flow.create_client(state, form))
                st.session_state.overview_state = state
                st.success(f"Added {client.name}")
                st.rerun()
            except FormValidationError as e:
                st.error(str(e))
            except StorageError as e:
                st.error(f"Could not save client: {e}")


def client_form_fields(form: ClientForm) -> ClientForm:
    """Render client inputs and return what was typed."""
    return ClientForm(
        id=form.id,
        name=st.text_input("Name *", value=form.name),
        email=st.text_input("Email", value=form.email),
        phone=st.text_input("Phone", value=form.phone),
        logo_path=st.text_input("Logo URL", value=form.logo_path),
        notes=st.text_area("Notes", value=form.notes),
    )


# =============================================================================
# CLIENT DASHBOARD
# =============================================================================

def leave_client_page():
    st.session_state.client_id = None
    st.session_state.pop("client_state", None)
    st.session_state.pop("invoice", None)
    st.session_state.pop("confirm_delete_project", None)
    st.session_state.pop("overview_state", None)


def render_client_page(client_flow: ClientDashboardFlow, overview_flow: OverviewFlow):
    """Render one client's dashboard."""
    client_id = st.session_state.client_id

    if st.button("← Back to overview"):
        leave_client_page()
        st.rerun()

    state = st.session_state.get("client_state")
    if state is None:
        try:
            state = run_async(client_flow.load(ClientPageState(), client_id))
        except StorageError as e:
            st.error(f"Could not load client: {e}")
            return
        if state is None:
            st.info("Loading…")
            return
        st.session_state.client_state = state

    client = state.client
    if client.logo_path:
        st.image(client.logo_path, width=80)
    st.title(client.name)
    st.caption(" · ".join(v for v in (client.email, client.phone) if v) or "No contact details")

    totals = state.totals
    col1, col2, col3 = st.columns(3)
    col1.metric("Total", money(totals.total))
    col2.metric("Received", money(totals.received))
    col3.metric("Pending", money(totals.pending))

    render_client_details(client_flow, state)
    state = st.session_state.get("client_state")
    if state is None:
        return

    st.markdown("---")
    render_upcoming(state)

    st.markdown("---")
    render_project_list(client_flow, state)

    st.markdown("---")
    render_project_form(client_flow, st.session_state.client_state)

    st.markdown("---")
    render_invoice(client_flow, st.session_state.client_state)


def render_client_details(client_flow: ClientDashboardFlow, state: ClientPageState):
    with st.expander("✏️ Edit client"):
        with st.form("edit_client"):
            form = client_form_fields(ClientForm.from_client(state.client))
            submitted = st.form_submit_button("Save client", type="primary")

        if submitted:
            try:
                st.session_state.client_state = run_async(
                    client_flow.save_client(state, form)
                )
                st.success("Client saved")
                st.rerun()
            except FormValidationError as e:
                st.error(str(e))
            except (StorageError, DashboardError) as e:
                st.error(f"Could not save client: {e}")

        confirm = st.checkbox("I understand this also deletes all of this client's projects")
        if st.button("🗑️ Delete client", disabled=not confirm):
            try:
                run_async(client_flow.delete_client(state))
                leave_client_page()
                st.rerun()
            except (StorageError, DashboardError) as e:
                st.error(f"Could not delete client: {e}")


def render_upcoming(state: ClientPageState):
    st.subheader("⏰ Upcoming deadlines")
    limit = get_settings().studio.upcoming_deadline_limit
    upcoming = state.upcoming(datetime.now().date(), limit)
    if not upcoming:
        st.caption("Nothing due.")
    for project in upcoming:
        st.markdown(
            f"- **{project.name}** due {format_date(project.deadline)} "
            f"({label(project.payment_status.value)})"
        )


def render_project_list(client_flow: ClientDashboardFlow, state: ClientPageState):
    st.subheader("Projects")

    col1, col2 = st.columns(2)
    work_options = [ALL] + [s.value for s in WorkStatus]
    payment_options = [ALL] + [s.value for s in PaymentStatus]
    work_filter = col1.selectbox(
        "Work status",
        options=work_options,
        index=work_options.index(state.work_filter),
        format_func=label,
    )
    payment_filter = col2.selectbox(
        "Payment status",
        options=payment_options,
        index=payment_options.index(state.payment_filter),
        format_func=label,
    )
    if (work_filter, payment_filter) != (state.work_filter, state.payment_filter):
        state = state.with_filters(work_filter, payment_filter)
        st.session_state.client_state = state

    projects = state.filtered_projects
    if not projects:
        st.info("No projects match these filters.")

    today = datetime.now().date()
    for project in projects:
        figures = amounts(project)
        col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 1, 1])
        due = f"due {format_date(project.deadline)}"
        if is_overdue(project, today):
            due = f":red[**⚠️ overdue** since {format_date(project.deadline)}]"
        col1.markdown(f"**{project.name}**  \n{project.type or '-'} · {due}")
        col2.markdown(
            f"{label(project.work_status.value)}  \n{label(project.payment_status.value)}"
        )
        col3.markdown(
            f"{money(figures.received)} / {money(figures.cost)}  \n"
            f"{money(figures.pending)} pending"
        )
        if col4.button("Edit", key=f"edit_{project.id}"):
            st.session_state.client_state = state.editing(project)
            st.rerun()
        if col5.button("Delete", key=f"delete_{project.id}"):
            st.session_state.confirm_delete_project = project.id
            st.rerun()

        if st.session_state.get("confirm_delete_project") == project.id:
            st.warning(f"Delete this project? \"{project.name}\" cannot be recovered.")
            yes, no = st.columns(2)
            if yes.button("Yes, delete", key=f"confirm_delete_{project.id}", type="primary"):
                st.session_state.pop("confirm_delete_project", None)
                try:
                    st.session_state.client_state = run_async(
                        client_flow.delete_project(state, project)
                    )
                    st.rerun()
                except (StorageError, DashboardError) as e:
                    st.error(f"Could not delete project: {e}")
            if no.button("Cancel", key=f"cancel_delete_{project.id}"):
                st.session_state.pop("confirm_delete_project", None)
                st.rerun()


def render_project_form(client_flow: ClientDashboardFlow, state: ClientPageState):
    form = state.project_form
    st.subheader("➕ New project" if form.is_new else f"✏️ Editing {form.name}")

    work_values = [s.value for s in WorkStatus]
    payment_values = [s.value for s in PaymentStatus]
    key = form.id or "new"

    with st.form(f"project_{key}"):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Project name *", value=form.name)
            type_ = st.text_input("Type", value=form.type)
            deadline = st.text_input("Deadline (YYYY-MM-DD)", value=form.deadline)
            work_status = st.selectbox(
                "Work status",
                options=work_values,
                index=work_values.index(form.work_status),
                format_func=label,
            )
        with col2:
            cost = st.text_input("Budget", value=form.cost)
            advance = st.text_input("Advance", value=form.advance)
            payment_status = st.selectbox(
                "Payment status",
                options=payment_values,
                index=payment_values.index(form.payment_status),
                format_func=label,
            )
            file_links = st.text_input("File links", value=form.file_links)
        notes = st.text_area("Notes", value=form.notes)
        submitted = st.form_submit_button(
            "Create project" if form.is_new else "Save changes",
            type="primary",
        )

    if not form.is_new and st.button("Cancel editing"):
        st.session_state.client_state = state.reset_form()
        st.rerun()

    if submitted:
        typed = ProjectForm(
            id=form.id,
            name=name,
            type=type_,
            deadline=deadline,
            cost=cost,
            advance=advance,
            work_status=work_status,
            payment_status=payment_status,
            file_links=file_links,
            notes=notes,
        )
        try:
            st.session_state.client_state = run_async(
                client_flow.save_project(state.with_form(typed), typed)
            )
            st.success("Project saved")
            st.rerun()
        except FormValidationError as e:
            st.session_state.client_state = state.with_form(typed)
            st.error(str(e))
        except (StorageError, DashboardError) as e:
            st.error(f"Could not save project: {e}")


def render_invoice(client_flow: ClientDashboardFlow, state: ClientPageState):
    st.subheader("🧾 Invoice")

    if st.button("Prepare invoice PDF"):
        filename, pdf = run_async(client_flow.export_invoice(state))
        st.session_state.invoice = (filename, pdf)

    invoice = st.session_state.get("invoice")
    if invoice:
        filename, pdf = invoice
        st.download_button(
            "⬇️ Download invoice",
            data=pdf,
            file_name=filename,
            mime="application/pdf",
        )


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    from src.config import validate_all_settings

    status = validate_all_settings()

    sections = [
        ("Supabase (Storage & Auth)", "supabase"),
        ("Studio details", "studio"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your Supabase "
        "URL and anon key. See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
