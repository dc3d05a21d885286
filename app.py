# app.py
"""
DCF Calculator
==============
Streamlit front end over DCFWorkbook:
1. Historical (Y1-Y4) and projection (P1-P5) inputs, with row clear and paste
2. Working capital, capex and free cash flow schedules
3. Discounted cash flow valuation and equity value per share
"""

import altair as alt
import streamlit as st

from config import LOG_LEVEL, STORAGE_PATH
from dcf_ui_adapter import DCFUIAdapter, format_raw_input, input_display_stale
from field_order import FIELD_ORDER, HISTORICAL_YEARS, PROJECTION_PERIODS, WORKING_CAPITAL_YEARS
from logging_config import configure_logging
from storage import WorkbookStore
from workbook import DCFWorkbook

configure_logging(LOG_LEVEL)

# (label, historical key prefix, projection key prefix, clear-row name)
INPUT_LINES = [
    ("Sales (₹ Cr)", "sales", None, "sales"),
    ("Sales Growth %", None, "sales_growth", "sales_growth"),
    ("Material Cost %", "material_cost", "proj_material_cost", "material_cost"),
    ("Manufacturing Cost %", "manufacturing_cost", "proj_manufacturing_cost", "manufacturing_cost"),
    ("SGA Cost %", None, "proj_sga_cost", "sga_cost"),
    ("Operating Profit (₹ Cr)", "operating_profit", None, "operating_profit"),
    ("Other Income (₹ Cr) / %", "other_income", "proj_other_income", "other_income"),
    ("Interest (₹ Cr) / %", "interest", "proj_interest", "interest"),
    ("Depreciation (₹ Cr) / %", "depreciation", "proj_depreciation", "depreciation"),
    ("Tax %", "tax", "proj_tax", "tax"),
    ("Debtor Days (Y2-Y4)", "debtor_days", None, "debtor_days"),
    ("Inventory Days (Y2-Y4)", "inventory_days", None, "inventory_days"),
    ("Payable Days (Y2-Y4)", "payable_days", None, "payable_days"),
    ("CAPEX (₹ Cr)", "capex", None, "capex"),
    ("CAPEX %", None, "proj_capex", "capex_pct"),
]

VALUATION_FIELDS = [
    ("wacc", "WACC %"),
    ("perpetuity_growth", "Perpetuity Growth %"),
    ("fiscal_year_end_month", "Fiscal Year-End Month (1-12)"),
    ("cash", "Total Cash (₹ Cr)"),
    ("debt", "Total Debt (₹ Cr)"),
    ("shares_outstanding", "Shares Outstanding (Cr)"),
    ("current_share_price", "Current Share Price (₹)"),
]

Y4_FIELDS = [("debtors", "Y4 Debtors"), ("inventory", "Y4 Inventory"), ("payables", "Y4 Payables")]


def _workbook() -> DCFWorkbook:
    if "workbook" not in st.session_state:
        st.session_state.workbook = DCFWorkbook.from_store(WorkbookStore(STORAGE_PATH))
        st.session_state.revision = 0
    return st.session_state.workbook


def _bump_revision():
    # Cell widgets are keyed by revision so they re-read the model after
    # undo, redo, reset, paste and row clear.
    st.session_state.revision += 1


def _cell_widget_key(field_key: str) -> str:
    return f"cell:{field_key}:{st.session_state.revision}"


def _on_cell_change(field_key: str, widget_key: str):
    wb = _workbook()
    typed = st.session_state[widget_key]
    wb.edit_field(field_key, typed)
    # "1,234" is stored as "1234"; re-key the widgets so they show the stored value
    if input_display_stale(typed, wb.value_of(field_key)):
        _bump_revision()


def _on_clear_row(row: str):
    _workbook().clear_row(row)
    _bump_revision()


def _on_undo():
    if _workbook().undo():
        _bump_revision()


def _on_redo():
    if _workbook().redo():
        _bump_revision()


def _on_reset():
    _workbook().reset()
    _bump_revision()


def _on_paste():
    text = st.session_state.get("paste_text", "")
    start_key = st.session_state.get("paste_start")
    result = _workbook().paste(text, start_key)
    if result.applied:
        _bump_revision()
        st.session_state.paste_status = f"Pasted {len(result.applied_keys)} value(s) starting at {start_key}"
        if result.dropped_tokens:
            st.session_state.paste_status += f" ({result.dropped_tokens} beyond the last field ignored)"
    else:
        st.session_state.paste_status = "Nothing to paste"


def _on_setting_change(group: str, name: str, widget_key: str):
    wb = _workbook()
    value = st.session_state[widget_key]
    if group == "valuation":
        wb.update_valuation(**{name: value})
    else:
        wb.update_y4_working_capital(**{name: value})


def render_cell(column, field_key: str):
    wb = _workbook()
    widget_key = _cell_widget_key(field_key)
    column.text_input(
        field_key,
        value=format_raw_input(wb.value_of(field_key)),
        key=widget_key,
        label_visibility="collapsed",
        on_change=_on_cell_change,
        args=(field_key, widget_key),
    )


def render_inputs():
    st.subheader("Inputs")
    header = st.columns([3] + [1] * (HISTORICAL_YEARS + PROJECTION_PERIODS) + [1])
    header[0].markdown("**Particulars**")
    for i in range(HISTORICAL_YEARS):
        header[1 + i].markdown(f"**Y{i + 1}**")
    for i in range(PROJECTION_PERIODS):
        header[1 + HISTORICAL_YEARS + i].markdown(f"**P{i + 1}**")

    for label, hist_prefix, proj_prefix, row in INPUT_LINES:
        cols = st.columns([3] + [1] * (HISTORICAL_YEARS + PROJECTION_PERIODS) + [1])
        cols[0].write(label)
        if hist_prefix:
            count = WORKING_CAPITAL_YEARS if hist_prefix.endswith("_days") else HISTORICAL_YEARS
            offset = HISTORICAL_YEARS - count
            for i in range(count):
                render_cell(cols[1 + offset + i], f"{hist_prefix}-{i}")
        if proj_prefix:
            for i in range(PROJECTION_PERIODS):
                render_cell(cols[1 + HISTORICAL_YEARS + i], f"{proj_prefix}-{i}")
        cols[-1].button("Clear", key=f"clear:{row}", on_click=_on_clear_row, args=(row,))

    with st.expander("Paste block of values"):
        st.selectbox(
            "Start at field",
            options=[spec.key for spec in FIELD_ORDER],
            key="paste_start",
        )
        st.text_area("Pasted text (tabs, new lines, ';' or 2+ spaces separate values)", key="paste_text")
        st.button("Apply paste", on_click=_on_paste)
        if st.session_state.get("paste_status"):
            st.caption(st.session_state.paste_status)


def render_settings():
    wb = _workbook()
    col_wc, col_val = st.columns(2)
    with col_wc:
        st.subheader("Y4 Working Capital")
        for name, label in Y4_FIELDS:
            widget_key = f"y4:{name}"
            st.text_input(label, value=getattr(wb.model.y4_working_capital, name), key=widget_key,
                          on_change=_on_setting_change, args=("y4", name, widget_key))
        st.caption(f"Y4 Working Capital: {wb.model.y4_working_capital.working_capital:,.0f}")
    with col_val:
        st.subheader("Valuation Inputs")
        for name, label in VALUATION_FIELDS:
            widget_key = f"valuation:{name}"
            st.text_input(label, value=getattr(wb.model.valuation, name), key=widget_key,
                          on_change=_on_setting_change, args=("valuation", name, widget_key))


def render_results():
    result = _workbook().recompute()
    adapter = DCFUIAdapter(result)
    ui = adapter.get_ui_data()
    if not ui["success"]:
        for error in ui["error"]:
            st.error(error)
        return

    st.subheader("Historical Analysis")
    st.dataframe(adapter.format_historical_table(), hide_index=True, use_container_width=True)
    st.subheader("Projected Income Statement")
    st.dataframe(adapter.format_projection_table(), hide_index=True, use_container_width=True)
    st.subheader("Working Capital")
    st.dataframe(adapter.format_working_capital_table(), hide_index=True, use_container_width=True)
    st.subheader("Free Cash Flow")
    st.dataframe(adapter.format_fcf_projection_table(), hide_index=True, use_container_width=True)

    chart = (
        alt.Chart(adapter.fcf_chart_data())
        .mark_bar()
        .encode(
            x=alt.X("period:N", title=None),
            y=alt.Y("fcf:Q", title="Free Cash Flow (₹ Cr)"),
            tooltip=[
                alt.Tooltip("period:N", title="Period"),
                alt.Tooltip("fcf:Q", title="FCF", format=",.0f"),
                alt.Tooltip("discounted_fcf:Q", title="Discounted FCF", format=",.0f"),
            ],
        )
    )
    st.altair_chart(chart, use_container_width=True)

    st.subheader("Valuation")
    if not ui["is_valid"]:
        st.error(f"Invalid valuation: {ui['invalid_reason']}")
    st.dataframe(adapter.format_bridge_table(), hide_index=True, use_container_width=True)
    for warning in ui["warnings"]:
        st.warning(warning)


def main():
    st.set_page_config(page_title="DCF Calculator", layout="wide")
    wb = _workbook()
    st.title("DCF Calculator")

    toolbar = st.columns(3)
    toolbar[0].button("Undo", on_click=_on_undo, disabled=not wb.history.can_undo)
    toolbar[1].button("Redo", on_click=_on_redo, disabled=not wb.history.can_redo)
    toolbar[2].button("Reset", on_click=_on_reset)

    render_inputs()
    render_settings()
    render_results()


main()
