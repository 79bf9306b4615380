from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

import streamlit as st

from app_config import AppConfig, configure_logging
from export import ExportFile, export_progress_report, export_roadmap, today_utc
from roadmap_errors import RoadmapError
from roadmap_models import STATUS_VALUES, STATUSES, RoadmapDocument, RoadmapItem
from roadmap_state import ItemDraft, completed_count, items_frame, status_counts
from session import RoadmapSession


APP_TITLE = "Roadmap Progress Tracker"
APP_SUBTITLE = "Load a roadmap → track every topic → export your progress as JSON"

SESSION_KEY = "_roadmap_session"
EDITING_KEY = "_editing_item"
UPLOADER_EPOCH_KEY = "_uploader_epoch"
CLEAR_DUE_KEY = "clear_due_date"
DETAIL_PARAM = "item"

GRID_COLUMNS = 3


# ----------------------------
# Session / navigation helpers
# ----------------------------


def _get_session(config: AppConfig) -> RoadmapSession:
    """Return this browser session's controller, loading the example roadmap the first time."""
    session = st.session_state.get(SESSION_KEY)
    if session is None:
        session = RoadmapSession(config)
        st.session_state[SESSION_KEY] = session
        with st.spinner("Loading roadmap..."):
            session.load_default()
    return session


def _open_item(item_id: str) -> None:
    st.session_state.pop(EDITING_KEY, None)
    st.query_params[DETAIL_PARAM] = item_id


def _go_home() -> None:
    st.session_state.pop(EDITING_KEY, None)
    st.query_params.clear()


def _start_edit(item_id: str) -> None:
    st.session_state[EDITING_KEY] = item_id


def _stop_edit() -> None:
    st.session_state.pop(EDITING_KEY, None)


def _uploader_key() -> str:
    return f"json_uploader_{st.session_state.get(UPLOADER_EPOCH_KEY, 0)}"


def _on_upload(session: RoadmapSession, key: str) -> None:
    """Uploader callback: runs only on a real user selection, not on every rerun."""
    uploaded = st.session_state.get(key)
    if uploaded is None:
        return
    if session.load_from_file(uploaded.getvalue(), source_name=uploaded.name):
        _go_home()
    # Fresh uploader key so re-selecting the same file fires a change again.
    st.session_state[UPLOADER_EPOCH_KEY] = int(st.session_state.get(UPLOADER_EPOCH_KEY, 0)) + 1


# ----------------------------
# Cached exports (rebuilt only when the document or the day changes)
# ----------------------------


@st.cache_data(show_spinner=False)
def _cached_export_json(document_dump: Dict[str, Any], today: date) -> ExportFile:
    """Cache wrapper: JSON export of the current document."""
    return export_roadmap(RoadmapDocument.model_validate(document_dump), today)


@st.cache_data(show_spinner=False)
def _cached_export_report(document_dump: Dict[str, Any], today: date) -> ExportFile:
    """Cache wrapper: xlsx progress report of the current document."""
    return export_progress_report(RoadmapDocument.model_validate(document_dump), today)


def _format_date(d: Optional[date]) -> str:
    return d.strftime("%d %b %Y") if d else ""


def _status_text(status: str) -> str:
    info = STATUSES[status]
    return f"{info.icon} {info.label}"


# ----------------------------
# UI
# ----------------------------


def _inject_css() -> None:
    st.markdown(
        """
<style>
  div.block-container { padding-top: 1.2rem; }
  [data-testid="stSidebar"] { border-right: 1px solid rgba(49, 51, 63, 0.10); }
  .stDownloadButton button, .stButton button { padding: 0.55rem 0.9rem; }
  footer { visibility: hidden; }
</style>
        """,
        unsafe_allow_html=True,
    )


def _render_sidebar(session: RoadmapSession) -> None:
    with st.sidebar:
        st.header("Roadmap")

        key = _uploader_key()
        st.file_uploader(
            "Upload a roadmap (.json)",
            type=["json"],
            key=key,
            on_change=_on_upload,
            args=(session, key),
        )

        if st.button("Reload example", use_container_width=True, help="Replace the current roadmap with the bundled example"):
            with st.spinner("Loading roadmap..."):
                if session.load_default():
                    _go_home()
                    st.rerun()

        st.divider()

        if session.document is None:
            # Nothing to offer yet; the click only tells the user why.
            if st.button("Export JSON", use_container_width=True):
                session.export()
            if st.button("Download progress (.xlsx)", use_container_width=True):
                session.export_report()
        else:
            dump = session.document.model_dump(mode="json", by_alias=True)
            today = today_utc()
            exported = _cached_export_json(dump, today)
            st.download_button(
                "Export JSON",
                data=exported.data,
                file_name=exported.file_name,
                mime=exported.mime,
                use_container_width=True,
            )
            report = _cached_export_report(dump, today)
            st.download_button(
                "Download progress (.xlsx)",
                data=report.data,
                file_name=report.file_name,
                mime=report.mime,
                use_container_width=True,
            )

        if session.source_name:
            st.caption(f"Source: {session.source_name}")
        if session.loaded_at:
            st.caption(f"Loaded at: {session.loaded_at}")
        st.caption("Edits live in this browser session only. Export to keep them.")


def _render_empty_state() -> None:
    st.subheader("Welcome to the Roadmap Progress Tracker!")
    st.markdown(
        """
Upload a roadmap in JSON format from the sidebar, or press **Reload example**
to start with the bundled React roadmap.

A roadmap file looks like:
```json
{ "title": "My roadmap", "items": [ { "id": "topic-1", "title": "First topic" } ] }
```
        """
    )


def _render_item_card(item: RoadmapItem, index: int) -> None:
    with st.container(border=True):
        st.markdown(f"**{STATUSES[item.status].icon} {item.title or item.id or '(untitled)'}**")
        if item.description:
            st.caption(item.description)
        if item.due_date:
            st.caption(f"📅 Due: {_format_date(item.due_date)}")
        if item.user_notes:
            st.caption("📝 Has notes")
        st.button(
            "Details →",
            key=f"open_item_{index}",
            on_click=_open_item,
            args=(item.id,),
            disabled=item.id is None,
            use_container_width=True,
        )


def _render_overview(session: RoadmapSession) -> None:
    document: Optional[RoadmapDocument] = session.document
    if document is None:
        _render_empty_state()
        return

    st.header(document.title)
    if document.description:
        st.write(document.description)

    progress = session.progress()
    done = completed_count(document)
    st.progress(progress / 100, text=f"{progress}% • {done} of {len(document.items)} topics completed")

    counts = status_counts(document)
    legend = st.columns(len(STATUS_VALUES))
    for col, status in zip(legend, STATUS_VALUES):
        col.metric(_status_text(status), counts[status])

    grid_tab, table_tab = st.tabs(["Grid", "Table"])

    with grid_tab:
        if not document.items:
            st.info("This roadmap has no topics yet.")
        for row_start in range(0, len(document.items), GRID_COLUMNS):
            cols = st.columns(GRID_COLUMNS)
            for offset, item in enumerate(document.items[row_start:row_start + GRID_COLUMNS]):
                with cols[offset]:
                    _render_item_card(item, row_start + offset)

    with table_tab:
        df = items_frame(document)
        df["status"] = df["status"].map(_status_text)
        st.dataframe(df, use_container_width=True, hide_index=True)


def _render_missing(title: str) -> None:
    st.subheader(title)
    st.button("← Back to roadmap", key="back_to_overview", on_click=_go_home)


def _render_edit_form(session: RoadmapSession, item: RoadmapItem) -> None:
    draft = ItemDraft.from_item(item)
    with st.form(key=f"edit_form_{item.id}"):
        status = st.radio(
            "Status",
            options=STATUS_VALUES,
            index=STATUS_VALUES.index(draft.status),
            format_func=_status_text,
            horizontal=True,
        )
        due = st.date_input("Due date", value=draft.due_date, format="YYYY-MM-DD")
        # The date widget cannot be emptied once it holds a value.
        clear_due = st.checkbox("No due date", value=False, key=CLEAR_DUE_KEY)
        notes = st.text_area(
            "My notes",
            value=draft.notes,
            height=180,
            placeholder="Add your notes, summaries, useful commands...",
        )
        c1, c2 = st.columns(2)
        save = c1.form_submit_button("Save", type="primary", use_container_width=True)
        cancel = c2.form_submit_button("Cancel", use_container_width=True)

    if save:
        draft = ItemDraft(status=status, due_date=None if clear_due else due, notes=notes)
        try:
            session.update_item(item.id, draft.as_update())
        except RoadmapError as e:
            st.error(str(e))
            return
        _stop_edit()
        st.rerun()
    elif cancel:
        _stop_edit()
        st.rerun()


def _render_item_view(item: RoadmapItem) -> None:
    st.markdown(f"**Status:** {_status_text(item.status)}")
    if item.due_date:
        st.markdown(f"**Due date:** 📅 {_format_date(item.due_date)}")
    if item.user_notes:
        st.markdown("**My notes:**")
        st.text(item.user_notes)
    else:
        st.caption("No notes yet. Press **Edit** to add your own notes.")
    st.button("Edit", key="start_edit", on_click=_start_edit, args=(item.id,))


def _render_detail(session: RoadmapSession, item_id: str) -> None:
    if session.document is None:
        _render_missing("Roadmap not loaded")
        return

    item = session.find_item(item_id)
    if item is None:
        _render_missing("Topic not found")
        return

    top_left, top_right = st.columns([3, 1])
    with top_left:
        st.button("← Back to roadmap", key="back_to_overview", on_click=_go_home)
    with top_right:
        st.metric("Progress", f"{session.progress()}%")

    st.markdown(f"### {_status_text(item.status)}")
    st.header(item.title or item.id)
    if item.description:
        st.write(item.description)

    if item.links:
        st.subheader("🔗 Useful links")
        for link in item.links:
            st.markdown(f"- [{link.title or link.url}]({link.url})")

    st.divider()
    st.subheader("Personal tracking")
    if st.session_state.get(EDITING_KEY) == item.id:
        _render_edit_form(session, item)
    else:
        _render_item_view(item)


def main() -> None:
    """Streamlit entry point: overview grid at the root, item detail at ?item=<id>."""
    config = AppConfig.from_env()
    configure_logging(config.log_level)

    st.set_page_config(page_title=APP_TITLE, page_icon="🗺️", layout="wide")
    _inject_css()

    st.title(APP_TITLE)
    st.caption(APP_SUBTITLE)

    session = _get_session(config)
    _render_sidebar(session)

    notice = session.pop_notice()
    if notice:
        st.toast(notice)
    if session.error:
        st.error(session.error)

    item_id = st.query_params.get(DETAIL_PARAM)
    if item_id:
        _render_detail(session, item_id)
    else:
        _render_overview(session)


if __name__ == "__main__":
    main()
