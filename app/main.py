"""
Streamlit Frontend for VoltTracker

The screen a household opens after topping up their prepaid meter.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is deleted
3. Clear error messages in simple language
4. AI suggestions never bypass the form; the user always saves

Every page reads from the one BillStore. After a save or delete the
store refreshes its list and the page is re-rendered from it.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st

from volttracker.config import get_settings, validate_all_settings
from volttracker.models.bill import BillFormInput, ElectricBill
from volttracker.orchestrator import (
    AnalysisFlow,
    AppComponents,
    BillEntryFlow,
    create_app_components,
)
from volttracker.queries import chart_series, compute_statistics
from volttracker.services.export import ExportError
from volttracker.services.image import ImageRejectedError
from volttracker.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="VoltTracker",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .analysis-box {
        padding: 20px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #4f46e5;
        margin: 10px 0;
    }
    .empty-box {
        padding: 20px;
        background-color: #f9fafb;
        border-radius: 10px;
        border: 1px dashed #d1d5db;
        text-align: center;
        margin: 10px 0;
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
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    components = get_components()
    store = components.store

    if not store.is_loaded:
        try:
            run_async(store.load())
        except StorageError as e:
            st.error(f"Could not load your records: {e}")

    # Sidebar navigation
    st.sidebar.title("⚡ VoltTracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "📋 History", "➕ Add Bill", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add a bill each time you buy units
        2. Set the finish date when the units run out
        3. Check the dashboard for trends
        """
    )

    bills = store.bills

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(bills, components.analysis_flow)
    elif page == "📋 History":
        render_history_page(bills, components)
    elif page == "➕ Add Bill":
        render_add_page(components.entry_flow)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_dashboard_page(bills: list[ElectricBill], analysis_flow: AnalysisFlow):
    """Render statistics, the spending chart and the AI analysis card."""
    st.title("📊 Dashboard")

    stats = compute_statistics(bills)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Spent", money(stats.total_spent))
    col2.metric("Avg. Bill Amount", money(stats.avg_spent))
    col3.metric("Total Entries", stats.entry_count)
    col4.metric("Avg. Duration", f"{stats.average_duration_days} Days")

    st.markdown("### Spending Trend")
    series = chart_series(bills)
    if series:
        st.bar_chart(
            {
                "Date Inserted": [p.date_inserted.isoformat() for p in series],
                "Amount": [float(p.amount_purchased) for p in series],
            },
            x="Date Inserted",
            y="Amount",
        )
    else:
        st.markdown(
            '<div class="empty-box">No data yet. Add a bill to see your spending trend.</div>',
            unsafe_allow_html=True,
        )

    st.markdown("---")
    st.markdown("### 🤖 AI Usage Analysis")

    if not analysis_flow.is_available:
        st.info("Set GEMINI_API_KEY in your .env file to enable AI analysis.")

    if st.button("✨ Analyze", type="primary"):
        with st.spinner("Analyzing your usage..."):
            run_async(analysis_flow.run(bills))

    result = analysis_flow.result
    if result.error:
        st.error(result.error)
    elif result.markdown:
        st.markdown(result.markdown)
        if result.generated_at:
            st.caption(f"Generated {result.generated_at:%d %B %Y %H:%M} UTC")
    else:
        st.caption("Press Analyze to get a summary of your consumption.")


def render_history_page(bills: list[ElectricBill], components: AppComponents):
    """Render the newest-first bill table with export, edit and delete."""
    st.title("📋 History")

    if not bills:
        st.markdown(
            '<div class="empty-box"><h4>No bills recorded</h4>'
            '<p>Get started by creating a new electric bill entry.</p></div>',
            unsafe_allow_html=True,
        )
        return

    st.dataframe(
        [
            {
                "Date Purchased": bill.date_purchased.isoformat(),
                "Date Inserted": bill.date_inserted.isoformat(),
                "Date Finished": bill.date_finished.isoformat() if bill.date_finished else "-",
                "Amount": money(bill.amount_purchased),
                "Status": bill.status.value,
                "Notes": bill.notes or "",
            }
            for bill in bills
        ],
        use_container_width=True,
        hide_index=True,
    )

    exporter = components.exporter
    try:
        st.download_button(
            "📥 Export to Excel",
            data=exporter.export(bills),
            file_name=exporter.filename,
            mime=exporter.content_type,
        )
    except ExportError as e:
        st.error(str(e))

    st.markdown("---")
    st.markdown("### Manage a Record")

    selected = st.selectbox(
        "Choose a bill",
        options=bills,
        format_func=lambda b: (
            f"{b.date_inserted.isoformat()} · {money(b.amount_purchased)} · {b.status.value}"
        ),
    )
    if selected is None:
        return

    if selected.receipt_image:
        with st.expander("🧾 View Receipt"):
            try:
                content, _ = components.entry_flow.image_service.decode_data_url(
                    selected.receipt_image
                )
                st.image(content, width=400)
            except ImageRejectedError as e:
                st.warning(str(e))

    with st.expander("✏️ Edit"):
        render_bill_form(
            components.entry_flow,
            defaults=BillFormInput.from_bill(selected),
            key=f"edit_{selected.id}",
            existing_id=selected.id,
        )

    pending = st.session_state.get("pending_delete")
    if pending != selected.id:
        if st.button("🗑️ Delete"):
            st.session_state.pending_delete = selected.id
            st.rerun()
        return

    st.warning("Are you sure you want to delete this record? This cannot be undone.")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Yes, delete", type="primary"):
            try:
                run_async(components.entry_flow.delete(selected.id))
                st.session_state.pending_delete = None
                st.success("Record deleted.")
                st.rerun()
            except StorageError as e:
                st.error(f"Failed to delete: {e}")
    with col2:
        if st.button("Cancel"):
            st.session_state.pending_delete = None
            st.rerun()


def render_add_page(entry_flow: BillEntryFlow):
    """Render the entry form with optional receipt scanning."""
    st.title("➕ Add New Bill Entry")

    if "scan_version" not in st.session_state:
        st.session_state.scan_version = 0
    if "scan_defaults" not in st.session_state:
        st.session_state.scan_defaults = BillFormInput()
    if "photo_version" not in st.session_state:
        st.session_state.photo_version = 0

    with st.expander("🧾 Receipt photo (optional)", expanded=True):
        source = st.radio("Source", ["Upload", "Camera"], horizontal=True)
        if source == "Camera":
            photo = st.camera_input(
                "Take a photo of the receipt",
                key=f"camera_{st.session_state.photo_version}",
            )
        else:
            photo = st.file_uploader(
                "Choose a receipt photo",
                type=get_settings().app.supported_formats_list,
                key=f"upload_{st.session_state.photo_version}",
            )

        if photo is not None and st.button("🔍 Scan receipt"):
            with st.spinner("Reading the receipt..."):
                try:
                    receipt, extracted = run_async(
                        entry_flow.scan_receipt(photo.getvalue(), photo.type)
                    )
                except ImageRejectedError as e:
                    st.error(str(e))
                else:
                    st.session_state.scan_defaults = st.session_state.scan_defaults.with_scan(
                        extracted, receipt.data_url
                    )
                    st.session_state.scan_version += 1
                    if extracted.is_empty:
                        st.info("Couldn't read the receipt. Please fill in the form yourself.")
                    else:
                        st.success("Receipt read. Please check the values below.")

        if photo is not None or st.session_state.scan_defaults.receipt_image:
            if st.button("🗑️ Remove photo"):
                st.session_state.scan_defaults = st.session_state.scan_defaults.without_photo()
                st.session_state.scan_version += 1
                st.session_state.photo_version += 1
                st.rerun()

    saved = render_bill_form(
        entry_flow,
        defaults=st.session_state.scan_defaults,
        key=f"add_{st.session_state.scan_version}",
        photo=photo,
    )
    if saved is not None:
        st.session_state.scan_defaults = BillFormInput()
        st.session_state.scan_version += 1
        st.session_state.photo_version += 1


def render_bill_form(
    entry_flow: BillEntryFlow,
    defaults: BillFormInput,
    key: str,
    existing_id=None,
    photo=None,
) -> Optional[ElectricBill]:
    """Render the bill form; returns the saved bill on a successful save."""
    today = date.today()
    symbol = get_settings().app.currency_symbol

    with st.form(key=f"{key}_form"):
        amount = st.number_input(
            f"Amount Purchased ({symbol}) *",
            value=float(defaults.amount_purchased) if defaults.amount_purchased is not None else None,
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )

        col1, col2, col3 = st.columns(3)
        with col1:
            date_purchased = st.date_input(
                "Date Purchased *",
                value=defaults.date_purchased or today,
            )
        with col2:
            date_inserted = st.date_input(
                "Date Inserted (Meter) *",
                value=defaults.date_inserted or today,
            )
        with col3:
            date_finished = st.date_input(
                "Date Finished (optional)",
                value=defaults.date_finished,
                help="Leave blank if still running.",
            )

        notes = st.text_area(
            "Notes",
            value=defaults.notes or "",
            placeholder="E.g., High usage due to AC...",
        )

        submitted = st.form_submit_button("💾 Save Record", type="primary")

    if not submitted:
        return None

    receipt_image = defaults.receipt_image
    if receipt_image is None and photo is not None:
        try:
            receipt_image = entry_flow.image_service.prepare(photo.getvalue(), photo.type).data_url
        except ImageRejectedError as e:
            st.error(str(e))
            return None

    form = BillFormInput(
        date_purchased=date_purchased,
        date_inserted=date_inserted,
        date_finished=date_finished,
        amount_purchased=amount,
        notes=notes,
        receipt_image=receipt_image,
    )

    try:
        bill, validation = run_async(entry_flow.submit(form, existing_id=existing_id))
    except StorageError as e:
        st.error(f"Failed to save: {e}")
        return None

    if bill is None:
        st.error(entry_flow.validator.get_user_friendly_summary(validation))
        return None

    if validation.warnings:
        st.warning(entry_flow.validator.get_user_friendly_summary(validation))
    st.success(f"Saved {money(bill.amount_purchased)} inserted on {bill.date_inserted:%d %B %Y}.")
    return bill


def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Storage")
    st.markdown(f"**Backend in use:** `{components.store.storage.name}`")
    st.markdown(f"**Records loaded:** {len(components.store.bills)}")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Gemini (AI analysis & receipt scanning)", "gemini"),
        ("Google Sheets (Remote storage)", "google_sheets"),
        ("Local storage", "local_storage"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your settings. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
